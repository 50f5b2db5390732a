"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions.
A notification is either addressed to a single recipient (user_id set) or
broadcast to every signed-in user (user_id NULL).

Tables:
    - notifications: 사용자/전체 알림 (Per-user and broadcast notifications)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Notification(Base):
    """알림 모델 — 작업 배정/완료/리마인더 등 수명주기 이벤트 알림.

    Notification model — Lifecycle event notifications (assignment,
    completion, reminders, trashcan alerts) delivered to recipients.

    Notification Types (type 필드 값):
        - "trashcan_full": 쓰레기통 가득 참 (Trashcan full alert)
        - "task_assigned": 작업 배정 (Task assigned to staff)
        - "task_completed": 작업 완료 (Task completed)
        - "task_reminder": 작업 리마인더 (Task reminder)
        - "maintenance_required": 유지보수 필요 (Maintenance required)
        - "system_alert": 시스템 알림 (System alert, fallback type)

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 수신자 FK, NULL이면 전체 알림 (Recipient, NULL = broadcast)
        type: 알림 유형 (Notification type, see above)
        priority: 우선순위 (low | medium | high | urgent)
        title: 알림 제목 (Display title)
        body: 알림 본문 (Display body)
        task_id: 참조 작업 FK (Referenced task, optional)
        data: 부가 데이터 JSONB (Structured payload, e.g. assigned_time, staff_name)
        is_read: 읽음 여부 (Read flag)
        read_at: 읽음 일시 (Set once when the notification is read)
        created_at: 생성 일시 UTC (Creation timestamp, immutable)
    """

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 수신자 FK — NULL이면 전체 사용자 대상 (NULL = visible to every recipient)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="system_alert")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # 참조 작업 FK — 작업 삭제 시 참조 해제 (SET NULL on task delete)
    task_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    # 읽음 일시 — is_read가 True일 때만 설정 (Non-null iff is_read)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )
