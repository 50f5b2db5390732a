"""계정 생성 라우터.

Account creation router — Admin-only endpoint that creates an
auto-confirmed identity and its profile.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.schemas.account import AccountCreate, AccountCreatedResponse
from app.services.account_service import account_service

router: APIRouter = APIRouter()


@router.post("/create-user", response_model=AccountCreatedResponse)
async def create_user(
    data: AccountCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin_id: Annotated[UUID, Depends(require_admin)],
) -> AccountCreatedResponse:
    """새 계정을 생성합니다 (관리자 전용).

    Create a new account. Only callers with the admin role may do this.

    Args:
        data: 계정 생성 요청 (Account creation request)
        db: 비동기 데이터베이스 세션 (Async database session)
        admin_id: 관리자 ID (Verified admin caller)

    Returns:
        AccountCreatedResponse: 생성된 계정 (Created identity)
    """
    return await account_service.create_account(db, data)
