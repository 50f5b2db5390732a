"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Serves the two function endpoints (account creation, task email relay)
under ``/functions/v1``. CORS is open to any origin; the preflight
``OPTIONS`` request is answered by the CORS middleware.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.functions import functions_router
from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 먼저 추가되어 CORS 안쪽에서 실행 — 프리플라이트는 로깅하지 않음
# (Added first, so it runs inside CORS; preflight requests are not logged)
app.add_middleware(AxiomLoggingMiddleware)

# 모든 출처 허용, 함수 호출용 헤더만 (Any origin, function-call headers)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """상태 확인 (Health check)."""
    return {"status": "ok"}


app.include_router(functions_router, prefix="/functions/v1")
