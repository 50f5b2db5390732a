"""알림 보강 서비스 — 작업 배정/완료 시각을 알림 데이터에 채웁니다.

Enrichment Service — Augments task notifications with assignment and
completion times fetched from the task directory. Enrichment failure is never
fatal: the record is returned with whatever data it already carried.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from app.config import settings
from app.schemas.notification import NotificationRecord, TaskReference
from app.services.ports import TaskDirectory
from app.utils.formatting import format_date_time, to_iso

logger = logging.getLogger(__name__)


class EnrichmentService:
    """알림 보강 서비스.

    Enrichment resolver. ``enrich`` returns an augmented copy or the
    original record; it never raises.
    """

    def __init__(
        self,
        task_directory: TaskDirectory,
        timeout: float | None = None,
    ) -> None:
        self._tasks: TaskDirectory = task_directory
        self._timeout: float = timeout if timeout is not None else settings.BACKEND_CALL_TIMEOUT_SECONDS

    async def enrich(
        self,
        record: NotificationRecord,
        now: datetime | None = None,
    ) -> NotificationRecord:
        """작업 참조가 있는 알림의 data를 보강합니다.

        Enrich a record that references a task.

        - No ``task_id``: returned unchanged.
        - ``data`` already carries enrichment fields: returned unchanged.
        - Otherwise the task is fetched; on success ``assigned_at`` /
          ``assigned_time`` (and ``completed_at`` / ``completed_time`` when
          the task is complete) are set on a copy of ``data``.

        Args:
            record: 원본 알림 (Raw notification record)
            now: 상대 시간 기준 시각 (Reference time for relative formatting)

        Returns:
            NotificationRecord: 보강된 사본 또는 원본 (Augmented copy or the original)
        """
        if not record.task_id:
            return record
        if record.data and record.has_enrichment:
            return record

        try:
            task: TaskReference | None = await asyncio.wait_for(
                self._tasks.get_task(record.task_id), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Task lookup timed out for notification %s (task %s)", record.id, record.task_id)
            return record
        except Exception:
            logger.exception("Error fetching task details for notification %s", record.id)
            return record

        if task is None:
            return record

        data: dict[str, Any] = dict(record.data)
        data.update(task_fields(task, now))
        return record.model_copy(update={"data": data})

    async def enrich_many(
        self,
        records: list[NotificationRecord],
        now: datetime | None = None,
    ) -> list[NotificationRecord]:
        """여러 알림을 동시에 보강합니다. 입력 순서를 유지합니다."""
        return list(await asyncio.gather(*(self.enrich(r, now) for r in records)))


def task_fields(task: TaskReference, now: datetime | None = None) -> dict[str, str]:
    """작업 참조에서 알림 data 필드를 만듭니다 (Derive data fields from a task)."""
    fields: dict[str, str] = {
        "assigned_at": to_iso(task.created_at),
        "assigned_time": format_date_time(task.created_at, now),
    }
    if task.completed_at is not None:
        fields["completed_at"] = to_iso(task.completed_at)
        fields["completed_time"] = format_date_time(task.completed_at, now)
    return fields
