"""JWT 액세스 토큰 유틸리티.

Access token helpers. The function endpoints and the notifier identify the
caller by the ``sub`` claim (user id) of an HS256 access token.

Payload:
    {"sub": "<user uuid>", "exp": <unix time>, "type": "access", ...extra claims}
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from app.config import settings

ACCESS_TOKEN_TYPE: str = "access"


def create_access_token(claims: dict[str, Any], expires_in: timedelta | None = None) -> str:
    """액세스 토큰을 발급합니다.

    Args:
        claims: 토큰 클레임, 최소 {"sub": user_id} (Claims, at least the subject)
        expires_in: 유효 기간 (Lifetime, defaults to JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        str: 서명된 토큰 (Signed token)
    """
    lifetime: timedelta = expires_in or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        **claims,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """토큰 서명과 만료를 검증하고 페이로드를 반환합니다.

    Raises:
        jwt.InvalidTokenError: 위조, 손상, 만료 (Forged, malformed or expired token)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
