"""계정 생성 Pydantic 요청/응답 스키마 정의.

Account creation request/response schema definitions.
Required fields and the age/date of birth values are validated by the service
so that a bad request yields a 400 with a readable reason, not a schema error.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AccountCreate(BaseModel):
    """계정 생성 요청 스키마 (관리자 전용).

    Account creation request (admin-only operation).

    Attributes:
        email: 로그인 이메일 (Login email, required)
        password: 비밀번호 (Plain text, bcrypt-hashed before storage, required)
        name: 이름 (Display name, required)
        role: 역할 (Role name, defaults to "staff")
    """

    email: str | None = None
    password: str | None = None
    name: str | None = None
    phone_number: str | None = None
    role: str | None = None
    department: str | None = None
    position: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    # 서비스에서 변환 — 형식 오류는 400으로 응답 (Parsed by the service so bad values get a 400)
    age: Any = None
    date_of_birth: Any = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None


class IdentityResponse(BaseModel):
    """생성된 인증 계정 응답."""

    id: str
    email: str
    email_confirmed_at: datetime | None = None
    user_metadata: dict = {}
    created_at: datetime


class AccountCreatedResponse(BaseModel):
    """계정 생성 성공 응답."""

    user: IdentityResponse
    message: str = "User created successfully"
