"""알림 클라이언트 협력자 포트 정의.

Collaborator ports for the notification client.
The client core only talks to these protocols; concrete adapters live in
``app.adapters`` and tests plug in in-memory fakes.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from app.schemas.notification import NotificationRecord, TaskReference

# 피드 콜백 — Feed callback invoked once per inserted notification row
InsertCallback = Callable[[NotificationRecord], None]

# 인증 상태 변경 리스너 — Identity change listener (None = signed out)
IdentityListener = Callable[[str | None], Awaitable[None]]


class IdentityProvider(Protocol):
    """현재 로그인 사용자를 제공하는 포트."""

    async def get_current_identity(self) -> str | None: ...

    def on_identity_change(self, listener: IdentityListener) -> None: ...


class NotificationBackend(Protocol):
    """알림 원장(backend of record) 포트.

    Backend of record for notifications: bulk fetch, live subscription and
    read-marking. ``subscribe`` must invoke ``on_insert_own`` for rows whose
    ``user_id`` equals the recipient and ``on_insert_broadcast`` for rows with
    no recipient, each in insertion order.
    """

    async def fetch_recent(self, recipient_id: str, limit: int = 100) -> Sequence[NotificationRecord]: ...

    async def subscribe(
        self,
        recipient_id: str,
        on_insert_own: InsertCallback,
        on_insert_broadcast: InsertCallback,
    ) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...

    async def mark_read(self, notification_id: str) -> None: ...

    async def mark_all_read(self, recipient_id: str) -> None: ...


class TaskDirectory(Protocol):
    """작업 조회 포트."""

    async def get_task(self, task_id: str) -> TaskReference | None: ...


class NotificationOutput(Protocol):
    """표시 출력 포트 — 팝업, 배지, 알림음.

    Output port the presentation queue drives. Implementations render alerts,
    update the page badge and play sounds; the core never touches a UI.
    """

    def show_alert(self, alert: Any) -> None: ...

    def close_alert(self, notification_id: str) -> None: ...

    def detach_alert(self, notification_id: str) -> None: ...

    def badge_changed(self, unread_count: int, title: str) -> None: ...

    def play_alert_sound(self) -> None: ...
