"""기본 레포지토리 — 레포지토리 공통 조회/생성/삭제.

Base Repository — Shared lookup, insert and delete for the repositories.
Writes only flush; committing is left to the caller so that a service can
decide where its transaction boundaries are (account creation commits the
identity and the profile separately).
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# 모델 타입 변수 — Mapped model handled by a repository
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """모델 하나에 대한 공통 쿼리.

    Attributes:
        model: 대상 ORM 모델 (Mapped model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """기본 키로 조회합니다. 없으면 None."""
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, values: dict[str, Any]) -> ModelType:
        """행을 추가하고 DB 기본값이 채워진 인스턴스를 반환합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            values: 컬럼 값 (Column values)

        Returns:
            ModelType: flush 후 새로 고친 인스턴스 (Flushed and refreshed instance)
        """
        instance: ModelType = self.model(**values)
        db.add(instance)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def delete(self, db: AsyncSession, record_id: UUID) -> bool:
        """기본 키로 삭제합니다. 삭제한 행이 있으면 True."""
        instance: ModelType | None = await self.get_by_id(db, record_id)
        if instance is None:
            return False
        await db.delete(instance)
        await db.flush()
        return True
