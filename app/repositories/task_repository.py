"""작업 레포지토리 — 알림 보강용 작업 조회.

Task Repository — Task lookups used to enrich task notifications.
"""

from app.models.task import Task
from app.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """작업 레포지토리.

    Extends:
        BaseRepository[Task]
    """

    def __init__(self) -> None:
        super().__init__(Task)


# 싱글턴 인스턴스 — Singleton instance
task_repository: TaskRepository = TaskRepository()
