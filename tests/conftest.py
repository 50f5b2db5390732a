"""테스트 인프라 — 포트 가짜 구현, httpx 클라이언트 픽스처.

Test infrastructure — In-memory fakes for the notification client ports and
an httpx client whose DB session is replaced by a stub. The repositories are
monkeypatched per test, so no database is needed.
"""

import asyncio
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import get_db
from app.main import app
from app.schemas.notification import NotificationRecord, TaskReference
from app.services.ports import InsertCallback
from app.utils.jwt import create_access_token

USER_A = "11111111-1111-1111-1111-111111111111"
USER_B = "22222222-2222-2222-2222-222222222222"

BASE_TIME = datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)


def make_record(
    notification_id: str | None = None,
    user_id: str | None = USER_A,
    minutes_ago: int = 0,
    **fields: Any,
) -> NotificationRecord:
    """테스트용 알림 레코드를 생성합니다."""
    values: dict[str, Any] = {
        "id": notification_id or str(uuid.uuid4()),
        "user_id": user_id,
        "type": "task_assigned",
        "title": "New task",
        "body": "Empty bin #4",
        "created_at": BASE_TIME - timedelta(minutes=minutes_ago),
    }
    values.update(fields)
    return NotificationRecord(**values)


async def settle(rounds: int = 10) -> None:
    """대기 중인 태스크가 진행되도록 이벤트 루프를 몇 번 양보합니다."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# 포트 가짜 구현 (Port fakes)
# ---------------------------------------------------------------------------
class FakeBackend:
    """인메모리 알림 백엔드."""

    def __init__(self, records: list[NotificationRecord] | None = None) -> None:
        self.records: list[NotificationRecord] = list(records or [])
        self.subscriptions: dict[str, tuple[InsertCallback, InsertCallback]] = {}
        self.unsubscribed: list[str] = []
        self.fetch_calls: list[str] = []
        self.mark_read_calls: list[str] = []
        self.mark_all_read_calls: list[str] = []
        self.fail_subscribe: bool = False
        self.fail_mark_read: bool = False
        self.fetch_gate: asyncio.Event | None = None
        self.mark_gate: asyncio.Event | None = None

    async def fetch_recent(self, recipient_id: str, limit: int = 100) -> list[NotificationRecord]:
        self.fetch_calls.append(recipient_id)
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        visible = [r for r in self.records if r.user_id in (None, recipient_id)]
        return sorted(visible, key=lambda r: r.created_at, reverse=True)[:limit]

    async def subscribe(
        self,
        recipient_id: str,
        on_insert_own: InsertCallback,
        on_insert_broadcast: InsertCallback,
    ) -> str:
        if self.fail_subscribe:
            raise ConnectionError("realtime unavailable")
        self.subscriptions[recipient_id] = (on_insert_own, on_insert_broadcast)
        return recipient_id

    async def unsubscribe(self, handle: Any) -> None:
        if handle is not None:
            self.subscriptions.pop(handle, None)
            self.unsubscribed.append(handle)

    async def mark_read(self, notification_id: str) -> None:
        self.mark_read_calls.append(notification_id)
        if self.mark_gate is not None:
            await self.mark_gate.wait()
        if self.fail_mark_read:
            raise RuntimeError("permission denied")

    async def mark_all_read(self, recipient_id: str) -> None:
        self.mark_all_read_calls.append(recipient_id)
        if self.mark_gate is not None:
            await self.mark_gate.wait()
        if self.fail_mark_read:
            raise RuntimeError("permission denied")
        # 본인 + 전체 알림 (Own and broadcast rows, like the SQL function)
        self.records = [
            r.as_read(BASE_TIME) if r.user_id in (None, recipient_id) else r
            for r in self.records
        ]

    def emit(self, record: NotificationRecord) -> None:
        """행 INSERT를 흉내 내어 활성 구독자에게 전달합니다."""
        self.records.append(record)
        for recipient_id, (on_own, on_broadcast) in list(self.subscriptions.items()):
            if record.user_id is None:
                on_broadcast(record)
            elif record.user_id == recipient_id:
                on_own(record)


class FakeTaskDirectory:
    """인메모리 작업 조회."""

    def __init__(self, tasks: dict[str, TaskReference] | None = None) -> None:
        self.tasks: dict[str, TaskReference] = dict(tasks or {})
        self.calls: list[str] = []
        self.delay: float = 0
        self.error: Exception | None = None

    async def get_task(self, task_id: str) -> TaskReference | None:
        self.calls.append(task_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.tasks.get(task_id)


class RecordingOutput:
    """표시 출력 호출을 기록합니다."""

    def __init__(self) -> None:
        self.shown: list[Any] = []
        self.closed: list[str] = []
        self.detached: list[str] = []
        self.badges: list[tuple[int, str]] = []
        self.sounds: int = 0
        self.sound_error: Exception | None = None

    def show_alert(self, alert: Any) -> None:
        self.shown.append(alert)

    def close_alert(self, notification_id: str) -> None:
        self.closed.append(notification_id)

    def detach_alert(self, notification_id: str) -> None:
        self.detached.append(notification_id)

    def badge_changed(self, unread_count: int, title: str) -> None:
        self.badges.append((unread_count, title))

    def play_alert_sound(self) -> None:
        if self.sound_error is not None:
            raise self.sound_error
        self.sounds += 1

    @property
    def shown_ids(self) -> list[str]:
        return [alert.notification_id for alert in self.shown]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def tasks() -> FakeTaskDirectory:
    return FakeTaskDirectory()


@pytest.fixture
def output() -> RecordingOutput:
    return RecordingOutput()


# ---------------------------------------------------------------------------
# HTTP 클라이언트 (Function endpoints)
# ---------------------------------------------------------------------------
class StubSession:
    """커밋/롤백만 기록하는 DB 세션 대역."""

    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()


@pytest.fixture
def db() -> StubSession:
    return StubSession()


@pytest_asyncio.fixture
async def client(db: StubSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[StubSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_token(user_id: str) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": user_id})


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
