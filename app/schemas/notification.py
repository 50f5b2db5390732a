"""알림 레코드 및 작업 참조 Pydantic 스키마 정의.

Notification record and task reference Pydantic schema definitions.
These are the in-memory shapes the notification client works with; they
mirror the ``notifications`` rows delivered by the bulk fetch and the live feed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 작업 관련 보강 필드 — Enrichment keys written into ``data``
ENRICHMENT_KEYS: tuple[str, ...] = ("assigned_at", "assigned_time")


class NotificationType(str, Enum):
    """알림 유형 — 알 수 없는 값은 system_alert로 처리."""

    TRASHCAN_FULL = "trashcan_full"
    TASK_ASSIGNED = "task_assigned"
    TASK_COMPLETED = "task_completed"
    TASK_REMINDER = "task_reminder"
    MAINTENANCE_REQUIRED = "maintenance_required"
    SYSTEM_ALERT = "system_alert"


# 작업 상세 블록을 표시하는 유형 — Types that render the task detail block
TASK_NOTIFICATION_TYPES: frozenset[NotificationType] = frozenset({
    NotificationType.TASK_ASSIGNED,
    NotificationType.TASK_COMPLETED,
    NotificationType.TASK_REMINDER,
})


class NotificationPriority(str, Enum):
    """알림 우선순위 — 값이 없으면 medium."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationRecord(BaseModel):
    """알림 레코드 스키마.

    Notification record as seen by the client.
    ``user_id`` of None marks a broadcast notification visible to everyone.
    ``read_at`` is set exactly when ``is_read`` becomes True.

    Attributes:
        id: 알림 ID, 백엔드에서 할당 (Backend-assigned identifier)
        user_id: 수신자 ID 또는 None (Recipient id, None for broadcast)
        type: 알림 유형 (Notification type, unknown values fall back to system_alert)
        priority: 우선순위 (Priority, defaults to medium)
        title: 제목, 렌더링 전 이스케이프 필요 (Untrusted display title)
        body: 본문, 렌더링 전 이스케이프 필요 (Untrusted display body)
        task_id: 참조 작업 ID (Referenced task id, optional)
        data: 부가 데이터 (Structured payload, may hold enrichment fields)
        is_read: 읽음 여부 (Read flag)
        read_at: 읽음 일시 (Read timestamp)
        created_at: 생성 일시 (Creation timestamp, ordering key)
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str | None = None
    type: NotificationType = NotificationType.SYSTEM_ALERT
    priority: NotificationPriority = NotificationPriority.MEDIUM
    title: str = ""
    body: str = ""
    task_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("id", "user_id", "task_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # UUID 컬럼 값도 문자열로 통일 — UUID columns are normalised to str
        if value is None:
            return None
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _fallback_type(cls, value: Any) -> NotificationType:
        try:
            return NotificationType(value)
        except ValueError:
            return NotificationType.SYSTEM_ALERT

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> NotificationPriority:
        try:
            return NotificationPriority(value)
        except ValueError:
            return NotificationPriority.MEDIUM

    @field_validator("title", "body", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("data", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_broadcast(self) -> bool:
        """수신자가 없는 전체 알림 여부 (True for broadcast notifications)."""
        return self.user_id is None

    @property
    def has_enrichment(self) -> bool:
        """data에 작업 시각 보강 필드가 이미 있는지 여부."""
        return any(self.data.get(key) for key in ENRICHMENT_KEYS)

    def as_read(self, read_at: datetime) -> "NotificationRecord":
        """읽음 상태로 전환된 사본을 반환합니다. 이미 읽은 경우 그대로 반환."""
        if self.is_read:
            return self
        return self.model_copy(update={"is_read": True, "read_at": read_at})


class TaskReference(BaseModel):
    """작업 참조 스키마 — 알림 보강에 쓰이는 작업 필드.

    Task fields read by the enrichment step.

    Attributes:
        created_at: 배정 일시 (Assignment timestamp)
        completed_at: 완료 일시 (Completion timestamp, optional)
        assigned_staff_id: 배정된 직원 ID (Assigned staff id)
        assigned_to: 배정 대상 이름 (Assignee display name)
    """

    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    completed_at: datetime | None = None
    assigned_staff_id: str | None = None
    assigned_to: str | None = None

    @field_validator("assigned_staff_id", mode="before")
    @classmethod
    def _stringify_staff_id(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)
