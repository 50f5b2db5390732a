"""인증 계정 레포지토리.

Auth Identity Repository — Creates and removes login identities.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.identity import AuthIdentity
from app.repositories.base import BaseRepository


class IdentityRepository(BaseRepository[AuthIdentity]):
    """인증 계정 레포지토리.

    Extends:
        BaseRepository[AuthIdentity]
    """

    def __init__(self) -> None:
        super().__init__(AuthIdentity)

    async def email_exists(self, db: AsyncSession, email: str) -> bool:
        """대소문자 구분 없이 이메일 중복 여부를 확인합니다."""
        result = await db.execute(
            select(func.count())
            .select_from(AuthIdentity)
            .where(func.lower(AuthIdentity.email) == email.lower())
        )
        return (result.scalar() or 0) > 0

    async def delete_identity(self, db: AsyncSession, identity_id: UUID) -> bool:
        """계정 생성 보상 삭제 (Compensating delete of a created identity)."""
        return await self.delete(db, identity_id)


# 싱글턴 인스턴스 — Singleton instance
identity_repository: IdentityRepository = IdentityRepository()
