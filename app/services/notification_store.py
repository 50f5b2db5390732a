"""알림 저장소 — 세션 범위 인메모리 알림 캐시.

Notification Store — In-memory, most-recent-first cache of the current
session's notifications. It is the single source of truth for the unread
count and for what the client renders. Mutations run on the event loop only,
so no locking is needed.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from app.schemas.notification import NotificationRecord

# 미읽음 수 변경 리스너 — Listener receiving the new unread count
UnreadListener = Callable[[int], None]


class NotificationStore:
    """알림 저장소.

    Ordered notification cache keyed by id. Never holds two entries with the
    same id and never deletes records except through ``clear``.
    """

    def __init__(self) -> None:
        self._records: list[NotificationRecord] = []
        self._listeners: list[UnreadListener] = []

    # --- 조회 (Queries) ---

    def all(self) -> list[NotificationRecord]:
        """모든 알림을 최신순으로 반환합니다 (Most recent first)."""
        return list(self._records)

    def get(self, notification_id: str) -> NotificationRecord | None:
        for record in self._records:
            if record.id == notification_id:
                return record
        return None

    def contains(self, notification_id: str) -> bool:
        return self.get(notification_id) is not None

    def unread(self) -> list[NotificationRecord]:
        return [r for r in self._records if not r.is_read]

    def unread_count(self) -> int:
        return sum(1 for r in self._records if not r.is_read)

    # --- 변경 (Mutations) ---

    def subscribe(self, listener: UnreadListener) -> None:
        """미읽음 수에 영향을 주는 변경마다 호출될 리스너를 등록합니다."""
        self._listeners.append(listener)

    def bulk_load(self, records: Iterable[NotificationRecord]) -> None:
        """저장소 내용을 주어진 레코드로 교체합니다.

        Replace the contents with ``records`` ordered by ``created_at``
        descending. Duplicate ids keep their first occurrence, so repeated
        identical loads leave the store in the same state.

        Args:
            records: 새로 조회한 알림 목록 (Freshly fetched notifications)
        """
        unique: dict[str, NotificationRecord] = {}
        for record in records:
            unique.setdefault(record.id, record)
        self._records = sorted(unique.values(), key=lambda r: r.created_at, reverse=True)
        self._notify()

    def insert(self, record: NotificationRecord) -> bool:
        """새 알림을 맨 앞에 추가합니다. 이미 있는 id면 건너뜁니다.

        Prepend a newly arrived record. Returns False without touching the
        store when a record with the same id is already present.
        """
        if self.contains(record.id):
            return False
        self._records.insert(0, record)
        self._notify()
        return True

    def mark_read(self, notification_id: str, read_at: datetime | None = None) -> bool:
        """단일 알림을 읽음 처리합니다. 없거나 이미 읽었으면 변경 없음.

        Returns:
            bool: 상태가 실제로 바뀌었는지 여부 (Whether the record transitioned)
        """
        read_at = read_at or datetime.now(timezone.utc)
        for index, record in enumerate(self._records):
            if record.id == notification_id:
                if record.is_read:
                    return False
                self._records[index] = record.as_read(read_at)
                self._notify()
                return True
        return False

    def mark_all_read(self, read_at: datetime | None = None) -> int:
        """모든 미읽음 알림을 읽음 처리하고 전환된 개수를 반환합니다."""
        read_at = read_at or datetime.now(timezone.utc)
        changed: int = 0
        for index, record in enumerate(self._records):
            if not record.is_read:
                self._records[index] = record.as_read(read_at)
                changed += 1
        if changed:
            self._notify()
        return changed

    def clear(self) -> None:
        """로그아웃 시 세션 캐시를 비웁니다 (Drop the session cache)."""
        had_records: bool = bool(self._records)
        self._records = []
        if had_records:
            self._notify()

    def _notify(self) -> None:
        count: int = self.unread_count()
        for listener in list(self._listeners):
            listener(count)
