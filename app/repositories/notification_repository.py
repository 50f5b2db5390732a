"""알림 레포지토리 — 수신자 범위 조회와 읽음 처리.

Queries behind the Postgres notification backend. A recipient sees rows
addressed to them plus broadcast rows (``user_id IS NULL``). Read-marking
only touches unread rows, so an existing ``read_at`` is never overwritten.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """notifications 테이블 쿼리."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def get_recent(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int = 100,
    ) -> Sequence[Notification]:
        """본인 알림과 전체 알림을 최신순으로 최대 ``limit``개 반환합니다."""
        result = await db.execute(
            select(Notification)
            .where(self._visible_to(user_id))
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def mark_read(self, db: AsyncSession, notification_id: UUID) -> bool:
        """알림 하나를 읽음 처리합니다. 바뀐 행이 있으면 True."""
        return await self._mark_unread_rows(db, Notification.id == notification_id) > 0

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        """수신자가 볼 수 있는 읽지 않은 알림(본인 + 전체)을 모두 읽음 처리합니다.

        Covers the same rows as ``get_recent``, so broadcast rows are marked
        read too, as a single ``mark_read`` on them already does.

        Returns:
            int: 업데이트된 알림 수 (Count of updated notifications)
        """
        return await self._mark_unread_rows(db, self._visible_to(user_id))

    @staticmethod
    def _visible_to(user_id: UUID) -> Any:
        return or_(Notification.user_id == user_id, Notification.user_id.is_(None))

    async def _mark_unread_rows(self, db: AsyncSession, condition: Any) -> int:
        result = await db.execute(
            update(Notification)
            .where(condition, Notification.is_read.is_(False))
            .values(is_read=True, read_at=func.now())
        )
        await db.flush()
        return result.rowcount


notification_repository: NotificationRepository = NotificationRepository()
