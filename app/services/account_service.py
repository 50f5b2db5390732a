"""계정 서비스 — 관리자에 의한 직원 계정 생성.

Account Service — Admin-initiated account creation.

Creating an account is two committed steps: the login identity, then the
profile row under the same id. When the profile step fails after the
identity was committed, the failure is logged with the identity id for
manual reconciliation and, if ACCOUNT_ROLLBACK_ON_PROFILE_FAILURE is set,
the identity is deleted again.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.identity import AuthIdentity
from app.repositories.identity_repository import identity_repository
from app.repositories.user_repository import user_repository
from app.schemas.account import AccountCreate, AccountCreatedResponse, IdentityResponse
from app.utils.exceptions import BadRequestError, DuplicateError, ServiceError
from app.utils.password import hash_password

logger = logging.getLogger(__name__)

# 프로필 선택 필드 — Optional profile fields copied as-is (empty values become NULL)
_PROFILE_FIELDS: tuple[str, ...] = (
    "department",
    "position",
    "address",
    "city",
    "state",
    "zip_code",
    "emergency_contact",
    "emergency_phone",
)


def _parse_age(value: Any) -> int | None:
    """나이를 0 이상의 정수로 변환합니다. 빈 값은 None.

    Raises:
        BadRequestError: 정수가 아님 (Not a non-negative whole number)
    """
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    raise BadRequestError("Invalid age: must be a non-negative whole number")


def _parse_date_of_birth(value: Any) -> date | None:
    """생년월일을 YYYY-MM-DD 형식에서 변환합니다. 빈 값은 None."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise BadRequestError("Invalid date_of_birth: expected YYYY-MM-DD")


class AccountService:
    """계정 서비스."""

    async def create_account(
        self,
        db: AsyncSession,
        data: AccountCreate,
    ) -> AccountCreatedResponse:
        """인증 계정과 프로필을 생성합니다.

        Create an auto-confirmed login identity and its profile row.
        The caller must already have been verified as an admin.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 계정 생성 요청 (Account creation request)

        Returns:
            AccountCreatedResponse: 생성된 계정 (Created identity)

        Raises:
            BadRequestError: 필수 필드 누락, 잘못된 나이/생년월일
                (Missing email, password or name; malformed age or date of birth)
            DuplicateError: 이메일 중복 (Email already registered)
            ServiceError: 프로필 저장 실패 (Profile upsert failed)
        """
        if not data.email or not data.password or not data.name:
            raise BadRequestError("Missing required fields: email, password, name")

        email: str = data.email.strip()
        role: str = data.role or "staff"
        age: int | None = _parse_age(data.age)
        date_of_birth: date | None = _parse_date_of_birth(data.date_of_birth)

        # 1. 인증 계정 생성 — Create the login identity
        if await identity_repository.email_exists(db, email):
            raise DuplicateError("A user with this email address has already been registered")

        try:
            password_hash: str = hash_password(data.password)
        except ValueError as exc:
            raise BadRequestError(str(exc)) from exc

        identity: AuthIdentity = await identity_repository.create(db, {
            "email": email,
            "password_hash": password_hash,
            "user_metadata": {"name": data.name, "phone_number": data.phone_number, "role": role},
            "email_confirmed_at": datetime.now(timezone.utc),
        })
        await db.commit()

        # 2. 프로필 upsert — Insert or update the profile row
        profile: dict[str, Any] = {
            "email": email,
            "name": data.name,
            "phone_number": data.phone_number,
            "role": role,
        }
        for field in _PROFILE_FIELDS:
            profile[field] = getattr(data, field) or None
        profile["age"] = age
        profile["date_of_birth"] = date_of_birth

        try:
            await user_repository.upsert_profile(db, identity.id, profile)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Profile upsert failed for identity %s (%s); identity requires reconciliation: %s",
                identity.id,
                email,
                exc,
            )
            if settings.ACCOUNT_ROLLBACK_ON_PROFILE_FAILURE:
                await self._remove_identity(db, identity.id)
            raise ServiceError(f"Database insert failed: {exc}") from exc

        logger.info("Created account %s (%s) with role %s", identity.id, email, role)
        return AccountCreatedResponse(
            user=IdentityResponse(
                id=str(identity.id),
                email=identity.email,
                email_confirmed_at=identity.email_confirmed_at,
                user_metadata=identity.user_metadata,
                created_at=identity.created_at,
            ),
        )

    async def _remove_identity(self, db: AsyncSession, identity_id: UUID) -> None:
        """프로필 저장 실패 후 보상 삭제. 실패하면 고아 계정으로 로그만 남깁니다."""
        try:
            await identity_repository.delete_identity(db, identity_id)
            await db.commit()
            logger.warning("Removed identity %s after profile failure", identity_id)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Orphaned identity %s could not be removed", identity_id)


# 싱글턴 인스턴스 — Singleton instance
account_service: AccountService = AccountService()
