"""Postgres 알림 백엔드 어댑터.

Postgres adapters for the notification client ports.

``PostgresNotificationBackend`` reads and updates ``notifications`` through
the repositories and receives live inserts over a dedicated asyncpg
connection that LISTENs on the channel fed by the ``notifications`` insert
trigger (see the Alembic revision). ``PostgresTaskDirectory`` serves task
lookups for enrichment.
"""

import json
import logging
from collections.abc import Sequence
from functools import partial
from typing import Any
from uuid import UUID

import asyncpg
from pydantic import ValidationError
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.repositories.notification_repository import notification_repository
from app.repositories.task_repository import task_repository
from app.schemas.notification import NotificationRecord, TaskReference
from app.services.ports import InsertCallback

logger = logging.getLogger(__name__)

# 알림 INSERT 트리거가 발행하는 채널 — Channel published by the insert trigger
NOTIFICATION_CHANNEL: str = "notifications_insert"


def to_asyncpg_dsn(database_url: str) -> str:
    """SQLAlchemy URL을 asyncpg가 받는 DSN으로 변환합니다."""
    return make_url(database_url).set(drivername="postgresql").render_as_string(hide_password=False)


class ListenHandle:
    """LISTEN 구독 핸들 — 전용 연결과 등록된 콜백."""

    def __init__(self, connection: asyncpg.Connection, callback: Any, recipient_id: str) -> None:
        self.connection: asyncpg.Connection = connection
        self.callback: Any = callback
        self.recipient_id: str = recipient_id


class PostgresNotificationBackend:
    """Postgres 알림 백엔드.

    Args:
        session_factory: 조회/갱신용 세션 팩토리 (Session factory for queries)
        database_url: LISTEN 연결에 쓸 DB URL (URL used for the LISTEN connection)
        channel: LISTEN 채널 이름 (Notification channel name)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        database_url: str,
        channel: str = NOTIFICATION_CHANNEL,
    ) -> None:
        self._session_factory: async_sessionmaker[AsyncSession] = session_factory
        self._dsn: str = to_asyncpg_dsn(database_url)
        self._channel: str = channel

    async def fetch_recent(self, recipient_id: str, limit: int = 100) -> Sequence[NotificationRecord]:
        async with self._session_factory() as db:
            rows = await notification_repository.get_recent(db, UUID(recipient_id), limit)
            return [NotificationRecord.model_validate(row) for row in rows]

    async def subscribe(
        self,
        recipient_id: str,
        on_insert_own: InsertCallback,
        on_insert_broadcast: InsertCallback,
    ) -> ListenHandle:
        """전용 연결을 열고 알림 채널을 LISTEN 합니다."""
        connection: asyncpg.Connection = await asyncpg.connect(self._dsn)
        dispatch = partial(self.dispatch, recipient_id, on_insert_own, on_insert_broadcast)

        def _listener(conn: asyncpg.Connection, pid: int, channel: str, payload: str) -> None:
            dispatch(payload)

        try:
            await connection.add_listener(self._channel, _listener)
        except Exception:
            await connection.close()
            raise
        return ListenHandle(connection, _listener, recipient_id)

    async def unsubscribe(self, handle: ListenHandle | None) -> None:
        if handle is None:
            return
        try:
            await handle.connection.remove_listener(self._channel, handle.callback)
        finally:
            await handle.connection.close()

    async def mark_read(self, notification_id: str) -> None:
        async with self._session_factory() as db:
            await notification_repository.mark_read(db, UUID(notification_id))
            await db.commit()

    async def mark_all_read(self, recipient_id: str) -> None:
        async with self._session_factory() as db:
            await notification_repository.mark_all_read(db, UUID(recipient_id))
            await db.commit()

    @staticmethod
    def dispatch(
        recipient_id: str,
        on_insert_own: InsertCallback,
        on_insert_broadcast: InsertCallback,
        payload: str,
    ) -> None:
        """NOTIFY 페이로드를 수신자 기준으로 own/broadcast 콜백에 전달합니다.

        Route one NOTIFY payload: rows for ``recipient_id`` go to the own
        callback, rows without a recipient to the broadcast callback, and
        rows for other recipients are ignored.
        """
        try:
            record = NotificationRecord.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as exc:
            logger.warning("Ignoring malformed notification payload: %s", exc)
            return

        if record.user_id is None:
            on_insert_broadcast(record)
        elif record.user_id == recipient_id:
            on_insert_own(record)


class PostgresTaskDirectory:
    """Postgres 작업 조회 어댑터."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory: async_sessionmaker[AsyncSession] = session_factory

    async def get_task(self, task_id: str) -> TaskReference | None:
        async with self._session_factory() as db:
            task = await task_repository.get_by_id(db, UUID(task_id))
            if task is None:
                return None
            return TaskReference.model_validate(task)
