"""인증 계정 SQLAlchemy ORM 모델 정의.

Authentication identity SQLAlchemy ORM model definition.
An identity holds the login credentials; the matching profile lives in
``users`` under the same id and is written in a separate step.

Tables:
    - auth_identities: 로그인 자격 증명 (Login credentials)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class AuthIdentity(Base):
    """인증 계정 모델.

    Authentication identity model.

    Attributes:
        id: 고유 식별자 UUID, 프로필 id와 동일 (Unique identifier, shared with the profile)
        email: 로그인 이메일, 전역 고유 (Login email, globally unique)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        user_metadata: 생성 시 메타데이터 (Metadata captured at creation: name, phone, role)
        email_confirmed_at: 이메일 확인 일시 (Email confirmation timestamp)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "auth_identities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # 비밀번호 해시 — 평문 저장 금지 (never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    user_metadata: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    email_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
