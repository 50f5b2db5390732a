"""FastAPI 의존성 주입 모듈 — 인증 및 관리자 권한 검사.

FastAPI dependency injection module — Authentication and authorization for
the request handlers.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 "sub"에서 사용자 ID를 추출
       (decode_token verifies the JWT; the user id is taken from "sub")

Authorization Flow (require_admin):
    1. 호출자 자신의 프로필 역할을 DB에서 조회 (Caller's own profile role is fetched)
    2. 역할이 admin이 아니면 403 반환 (Returns 403 unless the role is admin)
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.repositories.user_repository import user_repository
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import ACCESS_TOKEN_TYPE, decode_token

# 관리자 역할 이름 — Role allowed to create accounts
ADMIN_ROLE: str = "admin"

# HTTP Bearer 토큰 추출기 — 헤더가 없으면 None (401은 직접 발생)
# (Returns None without a header so the 401 body stays consistent)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """JWT 토큰에서 현재 사용자 ID를 추출합니다.

    Decode the bearer token and return the caller's user id.

    Args:
        credentials: HTTP Bearer 토큰 자격 증명 (Bearer token credentials from header)

    Returns:
        UUID: 호출자 ID (Caller's user id)

    Raises:
        UnauthorizedError: 토큰 없음, 만료, 위조 (Missing, expired or invalid token)
    """
    if credentials is None:
        raise UnauthorizedError()
    try:
        payload: dict = decode_token(credentials.credentials)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError("Invalid token type")
        return UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")


async def require_admin(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UUID:
    """호출자가 admin 역할인지 확인합니다.

    Verify the caller holds the admin role by looking up their own profile.

    Returns:
        UUID: 관리자 ID (Admin user id)

    Raises:
        ForbiddenError: admin이 아님 (Caller is not an admin)
    """
    role: str | None = await user_repository.get_role(db, user_id)
    if role != ADMIN_ROLE:
        raise ForbiddenError("Unauthorized: Only admins can create new accounts")
    return user_id
