"""프로세스 내 인증 상태 어댑터.

In-process identity provider. Holds the signed-in recipient and notifies
listeners on every sign-in or sign-out, including repeated sign-ins of the
same user; the session controller ignores those.
"""

import logging

import jwt

from app.services.ports import IdentityListener
from app.utils.jwt import ACCESS_TOKEN_TYPE, decode_token

logger = logging.getLogger(__name__)


class SessionIdentityProvider:
    """세션 인증 상태 제공자."""

    def __init__(self, recipient_id: str | None = None) -> None:
        self._recipient_id: str | None = recipient_id
        self._listeners: list[IdentityListener] = []

    async def get_current_identity(self) -> str | None:
        return self._recipient_id

    def on_identity_change(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def sign_in(self, recipient_id: str) -> None:
        self._recipient_id = recipient_id
        await self._emit()

    async def sign_in_with_token(self, token: str) -> str:
        """JWT의 sub 클레임으로 로그인합니다.

        Sign in as the ``sub`` of a verified access token.

        Raises:
            jwt.InvalidTokenError: 토큰 검증 실패 또는 액세스 토큰 아님
                (Invalid, expired or not an access token)
            ValueError: sub 클레임 없음 (Token without a subject)
        """
        payload = decode_token(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise jwt.InvalidTokenError("Invalid token type")
        subject = payload.get("sub")
        if not subject:
            raise ValueError("Token has no subject")
        await self.sign_in(str(subject))
        return str(subject)

    async def sign_out(self) -> None:
        self._recipient_id = None
        await self._emit()

    async def _emit(self) -> None:
        for listener in list(self._listeners):
            await listener(self._recipient_id)
