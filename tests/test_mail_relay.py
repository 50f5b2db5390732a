"""작업 배정 메일 릴레이 API 테스트.

Task email endpoint tests — Validation messages, success, provider rejection
and the timeout path. The SMTP sender is monkeypatched.
"""

import asyncio

import aiosmtplib
import pytest
from httpx import AsyncClient

from app.config import settings
from app.services.mail_relay_service import MailRelayService
from app.utils import email as email_utils

SEND_TASK_EMAIL_URL = "/functions/v1/send-task-email"

TASK_EMAIL = {
    "to_email": "kim@example.com",
    "staff_name": "Kim",
    "task_title": "Empty bin #4",
    "location": "Lobby <east>",
    "priority": "high",
}


class FakeSender:
    """SMTP 발송 대역."""

    def __init__(self, response: str = "250 2.0.0 OK queued", error: Exception | None = None, delay: float = 0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def __call__(self, **kwargs) -> str:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sender(monkeypatch) -> FakeSender:
    fake = FakeSender()
    monkeypatch.setattr(email_utils, "send_email", fake)
    return fake


class TestValidation:
    """요청 검증 테스트."""

    async def test_invalid_json(self, client: AsyncClient, sender):
        res = await client.post(
            SEND_TASK_EMAIL_URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid JSON in request body"

    @pytest.mark.parametrize(
        ("override", "message"),
        [
            ({"to_email": "not-an-address"}, "Invalid or missing to_email field"),
            ({"to_email": None}, "Invalid or missing to_email field"),
            ({"staff_name": "   "}, "Invalid or missing staff_name field"),
            ({"task_title": 42}, "Invalid or missing task_title field"),
        ],
    )
    async def test_field_errors(self, client: AsyncClient, sender, override, message):
        res = await client.post(SEND_TASK_EMAIL_URL, json={**TASK_EMAIL, **override})
        assert res.status_code == 400
        assert res.json()["detail"] == message
        assert sender.calls == []

    async def test_get_is_not_allowed(self, client: AsyncClient):
        res = await client.get(SEND_TASK_EMAIL_URL)
        assert res.status_code == 405


class TestSend:
    """발송 결과 테스트."""

    async def test_sent(self, client: AsyncClient, sender):
        res = await client.post(SEND_TASK_EMAIL_URL, json=TASK_EMAIL)

        assert res.status_code == 200
        assert res.json() == {"success": True, "kind": "sent", "message": "Email sent successfully", "status": 250}
        call = sender.calls[0]
        assert call["to"] == "kim@example.com"
        assert call["to_name"] == "Kim"
        assert call["subject"] == "📋 New Task Assigned: Empty bin #4"
        assert "Lobby &lt;east&gt;" in call["html"]
        assert "Location: Lobby <east>" in call["text"]
        assert "Due date" not in call["text"]

    async def test_recipient_refused(self, client: AsyncClient, sender):
        sender.error = aiosmtplib.SMTPRecipientsRefused(
            [aiosmtplib.SMTPRecipientRefused(550, "Mailbox unavailable", "kim@example.com")]
        )
        res = await client.post(SEND_TASK_EMAIL_URL, json=TASK_EMAIL)

        assert res.status_code == 502
        body = res.json()
        assert body["kind"] == "rejected"
        assert body["status"] == 550
        assert body["error"] == "Mailbox unavailable"

    async def test_provider_error_response(self, client: AsyncClient, sender):
        sender.error = aiosmtplib.SMTPResponseException(535, "Authentication failed")
        res = await client.post(SEND_TASK_EMAIL_URL, json=TASK_EMAIL)
        assert res.status_code == 502
        assert res.json()["status"] == 535

    async def test_connection_failure(self, client: AsyncClient, sender):
        sender.error = aiosmtplib.SMTPConnectError("Connection refused")
        res = await client.post(SEND_TASK_EMAIL_URL, json=TASK_EMAIL)
        assert res.status_code == 500
        assert res.json()["kind"] == "error"

    async def test_unresponsive_provider_times_out(self, client: AsyncClient, sender, monkeypatch):
        monkeypatch.setattr(settings, "MAIL_RELAY_TIMEOUT_SECONDS", 0.05)
        sender.delay = 5
        res = await client.post(SEND_TASK_EMAIL_URL, json=TASK_EMAIL)

        assert res.status_code == 504
        body = res.json()
        assert body["kind"] == "timeout"
        assert body["success"] is False
        assert "status" not in body

    async def test_smtp_timeout_is_timeout_kind(self, sender):
        sender.error = aiosmtplib.SMTPTimeoutError("Timed out waiting for server")
        service = MailRelayService(timeout=1)
        result = await service.send_task_email(service.validate(TASK_EMAIL))
        assert result.kind == "timeout"
        assert result.http_status == 504


def test_template_defaults():
    service = MailRelayService()
    params = service.build_template_params(service.validate(TASK_EMAIL))
    assert params["priority"] == "high"
    assert params["company_name"] == settings.MAIL_COMPANY_NAME
    assert params["app_link"] == settings.MAIL_APP_LINK
    assert params["assigned_date"]

    minimal = service.build_template_params(
        service.validate({"to_email": "a@b.c", "staff_name": "Lee", "task_title": "Check sensor"})
    )
    assert minimal["priority"] == "medium"
    assert minimal["task_description"] == ""
