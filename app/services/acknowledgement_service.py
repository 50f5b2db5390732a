"""읽음 처리 서비스 — 로컬 캐시와 알림 원장을 맞춥니다.

Acknowledgement Service — Marks one or all notifications read on the backend
of record and then commits the transition to the local store. There is no
optimistic update: a backend failure leaves local state untouched and is only
logged.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel

from app.config import settings
from app.services.notification_store import NotificationStore
from app.services.ports import NotificationBackend

logger = logging.getLogger(__name__)


class AckResult(BaseModel):
    """읽음 처리 결과.

    Attributes:
        ok: 성공 여부 (Whether the backend accepted the change)
        changed: 로컬에서 읽음으로 전환된 알림 수 (Records that transitioned locally)
        error: 실패 사유 (Failure reason, when not ok)
    """

    ok: bool
    changed: int = 0
    error: str | None = None


class AcknowledgementService:
    """읽음 처리 서비스."""

    def __init__(
        self,
        backend: NotificationBackend,
        store: NotificationStore,
        current_recipient: Callable[[], str | None],
        timeout: float | None = None,
    ) -> None:
        self._backend: NotificationBackend = backend
        self._store: NotificationStore = store
        self._current_recipient: Callable[[], str | None] = current_recipient
        self._timeout: float = timeout if timeout is not None else settings.BACKEND_CALL_TIMEOUT_SECONDS

    async def mark_read(self, notification_id: str) -> AckResult:
        """단일 알림을 읽음 처리합니다.

        Mark one notification read. Already-read notifications succeed without
        a backend call.

        Args:
            notification_id: 알림 ID (Notification identifier)

        Returns:
            AckResult: 처리 결과 (Outcome; never raises)
        """
        existing = self._store.get(notification_id)
        if existing is not None and existing.is_read:
            return AckResult(ok=True)

        recipient: str | None = self._current_recipient()
        try:
            await asyncio.wait_for(self._backend.mark_read(notification_id), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out marking notification %s as read", notification_id)
            return AckResult(ok=False, error="timeout")
        except Exception as exc:
            logger.error("Error marking notification %s as read: %s", notification_id, exc)
            return AckResult(ok=False, error=str(exc) or type(exc).__name__)

        # 그 사이 세션이 바뀌었으면 로컬 반영 생략 — Skip local commit if the session moved on
        if recipient is None or recipient != self._current_recipient():
            return AckResult(ok=True)

        changed: bool = self._store.mark_read(notification_id, datetime.now(timezone.utc))
        return AckResult(ok=True, changed=int(changed))

    async def mark_all_read(self) -> AckResult:
        """현재 수신자의 모든 알림을 읽음 처리합니다.

        Mark every notification of the current recipient read.
        """
        recipient: str | None = self._current_recipient()
        if recipient is None:
            return AckResult(ok=False, error="not signed in")

        try:
            await asyncio.wait_for(self._backend.mark_all_read(recipient), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out marking all notifications as read (recipient %s)", recipient)
            return AckResult(ok=False, error="timeout")
        except Exception as exc:
            logger.error("Error marking all notifications as read (recipient %s): %s", recipient, exc)
            return AckResult(ok=False, error=str(exc) or type(exc).__name__)

        if recipient != self._current_recipient():
            return AckResult(ok=True)

        changed: int = self._store.mark_all_read(datetime.now(timezone.utc))
        return AckResult(ok=True, changed=changed)
