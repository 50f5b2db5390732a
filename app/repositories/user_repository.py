"""사용자 프로필 레포지토리 — 역할 조회 및 프로필 upsert.

User Repository — Profile queries: the caller role lookup used by the admin
check and the profile upsert that follows identity creation.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the users (profile) table.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_role(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> str | None:
        """사용자의 역할 이름을 조회합니다.

        Look up a user's role name.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)

        Returns:
            str | None: 역할 이름, 프로필이 없으면 None (Role name, None without a profile)
        """
        result = await db.execute(select(User.role).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def upsert_profile(
        self,
        db: AsyncSession,
        user_id: UUID,
        profile: dict[str, Any],
    ) -> None:
        """프로필을 생성하거나 이미 있으면 갱신합니다.

        Insert the profile row, or update it when a row with the same id
        already exists (e.g. created by a database trigger).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 인증 계정과 같은 UUID (UUID shared with the identity)
            profile: 프로필 컬럼 값 (Profile column values)
        """
        now: datetime = datetime.now(timezone.utc)
        values: dict[str, Any] = {
            **profile,
            "id": user_id,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        update_values: dict[str, Any] = {k: v for k, v in values.items() if k not in ("id", "created_at")}
        stmt = (
            insert(User)
            .values(**values)
            .on_conflict_do_update(index_elements=[User.id], set_=update_values)
        )
        await db.execute(stmt)
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
