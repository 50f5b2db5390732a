"""함수형 엔드포인트 라우터 패키지.

Function endpoint router package — Aggregates the single-shot request
handlers served under ``/functions/v1``.

Included routers:
    - accounts: 관리자 계정 생성 (Admin account creation)
    - emails: 작업 배정 메일 릴레이 (Task assignment mail relay)
"""

from fastapi import APIRouter

from app.api.functions.accounts import router as accounts_router
from app.api.functions.emails import router as emails_router

functions_router: APIRouter = APIRouter()

functions_router.include_router(accounts_router, tags=["Functions - Accounts"])
functions_router.include_router(emails_router, tags=["Functions - Emails"])
