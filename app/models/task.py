"""작업 SQLAlchemy ORM 모델 정의.

Task SQLAlchemy ORM model definition.
Only the columns the notification client reads are mapped here.

Tables:
    - tasks: 직원 작업 (Staff tasks such as emptying a trashcan)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Task(Base):
    """작업 모델.

    Task model — work assigned to a staff member.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        title: 작업 제목 (Task title)
        assigned_staff_id: 배정된 직원 FK (Assigned staff user)
        assigned_to: 배정 대상 표시 이름 (Assignee display name)
        created_at: 생성(배정) 일시 (Creation / assignment timestamp)
        completed_at: 완료 일시 (Completion timestamp, optional)
    """

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    assigned_staff_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
