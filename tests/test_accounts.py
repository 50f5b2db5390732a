"""계정 생성 API 테스트.

Account creation endpoint tests — Authentication, admin check, required
fields, duplicate email and the partial-failure path.
"""

import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.repositories.identity_repository import identity_repository
from app.repositories.user_repository import user_repository
from tests.conftest import StubSession, auth_header, make_token

CREATE_USER_URL = "/functions/v1/create-user"
ADMIN_ID = "33333333-3333-3333-3333-333333333333"

NEW_USER = {
    "email": "kim@example.com",
    "password": "s3cret-pass",
    "name": "Kim Staff",
    "phone_number": "010-1234-5678",
    "department": "Facilities",
    "age": 31,
    "date_of_birth": "1993-04-02",
}


class FakeRepositories:
    """레포지토리 호출을 가로채는 대역."""

    def __init__(self, role: str | None = "admin") -> None:
        self.role = role
        self.emails: set[str] = set()
        self.created: list[dict] = []
        self.deleted: list[uuid.UUID] = []
        self.profiles: list[tuple[uuid.UUID, dict]] = []
        self.profile_error: Exception | None = None

    async def get_role(self, db, user_id):
        return self.role

    async def email_exists(self, db, email):
        return email.lower() in self.emails

    async def create(self, db, data):
        self.created.append(data)
        return SimpleNamespace(id=uuid.uuid4(), created_at=datetime.now(timezone.utc), **data)

    async def upsert_profile(self, db, user_id, profile):
        if self.profile_error is not None:
            raise self.profile_error
        self.profiles.append((user_id, profile))

    async def delete_identity(self, db, identity_id):
        self.deleted.append(identity_id)
        return True


@pytest.fixture
def repos(monkeypatch) -> FakeRepositories:
    fake = FakeRepositories()
    monkeypatch.setattr(user_repository, "get_role", fake.get_role)
    monkeypatch.setattr(user_repository, "upsert_profile", fake.upsert_profile)
    monkeypatch.setattr(identity_repository, "email_exists", fake.email_exists)
    monkeypatch.setattr(identity_repository, "create", fake.create)
    monkeypatch.setattr(identity_repository, "delete_identity", fake.delete_identity)
    return fake


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_header(make_token(ADMIN_ID))


class TestCreateUser:
    """계정 생성 테스트."""

    async def test_admin_creates_account(self, client: AsyncClient, repos, admin_headers, db: StubSession):
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=admin_headers)
        assert res.status_code == 200
        body = res.json()
        assert body["message"] == "User created successfully"
        assert body["user"]["email"] == "kim@example.com"
        assert body["user"]["user_metadata"] == {
            "name": "Kim Staff",
            "phone_number": "010-1234-5678",
            "role": "staff",
        }
        assert body["user"]["email_confirmed_at"] is not None

        created = repos.created[0]
        assert created["password_hash"] != "s3cret-pass"
        user_id, profile = repos.profiles[0]
        assert str(user_id) == body["user"]["id"]
        assert profile["department"] == "Facilities"
        assert profile["age"] == 31
        assert profile["date_of_birth"] == date(1993, 4, 2)
        assert profile["city"] is None
        assert db.commit.await_count == 2

    async def test_role_is_kept_when_given(self, client: AsyncClient, repos, admin_headers):
        res = await client.post(CREATE_USER_URL, json={**NEW_USER, "role": "admin"}, headers=admin_headers)
        assert res.status_code == 200
        assert repos.profiles[0][1]["role"] == "admin"

    async def test_requires_authentication(self, client: AsyncClient, repos):
        res = await client.post(CREATE_USER_URL, json=NEW_USER)
        assert res.status_code == 401
        assert repos.created == []

    async def test_rejects_invalid_token(self, client: AsyncClient, repos):
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=auth_header("not-a-jwt"))
        assert res.status_code == 401

    async def test_non_admin_is_forbidden(self, client: AsyncClient, repos, admin_headers):
        repos.role = "staff"
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=admin_headers)
        assert res.status_code == 403
        assert res.json()["detail"] == "Unauthorized: Only admins can create new accounts"
        assert repos.created == []

    async def test_caller_without_profile_is_forbidden(self, client: AsyncClient, repos, admin_headers):
        repos.role = None
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=admin_headers)
        assert res.status_code == 403

    @pytest.mark.parametrize("missing", ["email", "password", "name"])
    async def test_missing_required_field(self, client: AsyncClient, repos, admin_headers, missing):
        payload = {k: v for k, v in NEW_USER.items() if k != missing}
        res = await client.post(CREATE_USER_URL, json=payload, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "Missing required fields: email, password, name"

    async def test_password_too_long(self, client: AsyncClient, repos, admin_headers):
        res = await client.post(CREATE_USER_URL, json={**NEW_USER, "password": "x" * 73}, headers=admin_headers)
        assert res.status_code == 400
        assert repos.created == []

    @pytest.mark.parametrize(
        ("field", "value", "detail"),
        [
            ("age", "thirty", "Invalid age: must be a non-negative whole number"),
            ("age", -4, "Invalid age: must be a non-negative whole number"),
            ("age", 31.5, "Invalid age: must be a non-negative whole number"),
            ("date_of_birth", "02/04/1993", "Invalid date_of_birth: expected YYYY-MM-DD"),
            ("date_of_birth", "1993-13-40", "Invalid date_of_birth: expected YYYY-MM-DD"),
        ],
    )
    async def test_malformed_profile_value(self, client: AsyncClient, repos, admin_headers, field, value, detail):
        res = await client.post(CREATE_USER_URL, json={**NEW_USER, field: value}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["detail"] == detail
        assert repos.created == []

    async def test_age_given_as_text_and_empty_date(self, client: AsyncClient, repos, admin_headers):
        payload = {**NEW_USER, "age": "42", "date_of_birth": ""}
        res = await client.post(CREATE_USER_URL, json=payload, headers=admin_headers)
        assert res.status_code == 200
        profile = repos.profiles[0][1]
        assert profile["age"] == 42
        assert profile["date_of_birth"] is None

    async def test_duplicate_email(self, client: AsyncClient, repos, admin_headers):
        repos.emails.add("kim@example.com")
        res = await client.post(CREATE_USER_URL, json={**NEW_USER, "email": "KIM@example.com"}, headers=admin_headers)
        assert res.status_code == 409
        assert repos.created == []


class TestProfileFailure:
    """프로필 저장 실패 테스트."""

    async def test_identity_is_rolled_back(self, client: AsyncClient, repos, admin_headers, db: StubSession):
        repos.profile_error = IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=admin_headers)

        assert res.status_code == 500
        assert res.json()["detail"].startswith("Database insert failed:")
        assert len(repos.deleted) == 1
        assert db.rollback.await_count == 1

    async def test_identity_is_kept_when_rollback_disabled(
        self, client: AsyncClient, repos, admin_headers, monkeypatch
    ):
        monkeypatch.setattr(settings, "ACCOUNT_ROLLBACK_ON_PROFILE_FAILURE", False)
        repos.profile_error = IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))
        res = await client.post(CREATE_USER_URL, json=NEW_USER, headers=admin_headers)

        assert res.status_code == 500
        assert repos.deleted == []
