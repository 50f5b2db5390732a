"""요청 로깅 미들웨어 — 함수 엔드포인트 호출 기록.

Request logging middleware for the function endpoints.
Every call is summarized (method, path, status, duration, failure reason)
to the module logger and, when configured, shipped to Axiom as a structured
event. Passwords and tokens are masked and recipient addresses are
partially hidden before anything leaves the process.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 필드 — Fields replaced entirely
_SECRET_KEYS = re.compile(r"(password|secret|token|authorization|api_key|credential)", re.IGNORECASE)

# 부분 마스킹 대상 필드 — Email fields shown as "j***@example.com"
_EMAIL_KEYS = re.compile(r"(^email$|_email$)", re.IGNORECASE)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_ERROR_LEN: int = 500


def _hide_email(value: Any) -> Any:
    if not isinstance(value, str) or "@" not in value:
        return value
    local, _, domain = value.partition("@")
    return f"{local[:1]}***@{domain}"


def _mask(data: Any) -> Any:
    """요청 본문의 민감 값을 가립니다 (최상위 필드만)."""
    if not isinstance(data, dict):
        return data
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if _SECRET_KEYS.search(key):
            masked[key] = "***"
        elif _EMAIL_KEYS.search(key):
            masked[key] = _hide_email(value)
        else:
            masked[key] = value
    return masked


def _failure_reason(body: bytes) -> str:
    """오류 응답 본문에서 사유를 추출합니다 (``detail`` 또는 ``error``)."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:_MAX_ERROR_LEN]
    if isinstance(data, dict):
        reason = data.get("detail") or data.get("error") or data
    else:
        reason = data
    return str(reason)[:_MAX_ERROR_LEN]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """함수 엔드포인트 요청/응답 로깅 미들웨어.

    Logs one line per request locally and, with AXIOM_API_TOKEN and
    AXIOM_DATASET set, ingests the same event into Axiom.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET
        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": request.url.path}

        if request.method == "POST":
            raw: bytes = await request.body()
            try:
                event["request_body"] = _mask(json.loads(raw)) if raw else None
            except (json.JSONDecodeError, UnicodeDecodeError):
                event["request_body"] = "(non-json body)"

        status_code: int = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            if status_code >= 400:
                # 오류 본문을 읽은 뒤 다시 감싸서 반환 — Re-wrap the consumed error body
                body = b""
                async for chunk in response.body_iterator:
                    body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                event["error"] = _failure_reason(body)
                response = Response(
                    content=body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._emit(event)

        return response

    def _emit(self, event: dict[str, Any]) -> None:
        level: int = logging.WARNING if event["status_code"] >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.2fms)%s",
            event["method"],
            event["path"],
            event["status_code"],
            event["duration_ms"],
            f" {event['error']}" if event.get("error") else "",
        )
        if self._client is None:
            return
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:
            logger.debug("Axiom ingest failed: %s", exc)
