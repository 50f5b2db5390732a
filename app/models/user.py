"""사용자 프로필 SQLAlchemy ORM 모델 정의.

User profile SQLAlchemy ORM model definition.
The profile row shares its id with the authentication identity and carries
the role used for admin checks.

Tables:
    - users: 사용자 프로필 (User profiles)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Boolean, Date, DateTime, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    """사용자 프로필 모델 — 직원/관리자 정보.

    User profile model — staff and admin details.

    Roles (role 필드 값):
        - "admin": 관리자, 계정 생성 가능 (Can create accounts)
        - "staff": 현장 직원 (Field staff, default)

    Attributes:
        id: 고유 식별자 UUID, 인증 계정 id와 동일 (Same id as the auth identity)
        email: 이메일 (Email address)
        name: 이름 (Display name)
        role: 역할 이름 (Role name)
        is_active: 활성 상태 (Active status)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="staff")
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 주소 — Postal address fields
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    # 비상 연락처 — Emergency contact
    emergency_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)
    emergency_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
