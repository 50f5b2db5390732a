"""메일 릴레이 서비스 — 작업 배정 메일 발송.

Mail Relay Service — Validates a task assignment email request and forwards
it to the transactional SMTP provider under a fixed deadline. A provider that
never answers is reported as ``timeout``; a provider that answers with an
error is reported as ``rejected`` with its raw status code.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import aiosmtplib

from app.config import settings
from app.schemas.mail import MailRelayResult, TaskEmailRequest
from app.utils import email as email_utils
from app.utils.exceptions import BadRequestError
from app.utils.formatting import escape_html

logger = logging.getLogger(__name__)


def _non_empty(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


class MailRelayService:
    """메일 릴레이 서비스."""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout: float | None = timeout

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else settings.MAIL_RELAY_TIMEOUT_SECONDS

    def validate(self, payload: Any) -> TaskEmailRequest:
        """요청 본문을 검증합니다.

        Raises:
            BadRequestError: 필드 누락/형식 오류 (Missing or malformed field)
        """
        if not isinstance(payload, dict):
            raise BadRequestError("Invalid JSON in request body")

        to_email = payload.get("to_email")
        if not isinstance(to_email, str) or "@" not in to_email:
            raise BadRequestError("Invalid or missing to_email field")
        if not _non_empty(payload.get("staff_name")):
            raise BadRequestError("Invalid or missing staff_name field")
        if not _non_empty(payload.get("task_title")):
            raise BadRequestError("Invalid or missing task_title field")

        # 선택 필드는 문자열만 유지 — Optional fields keep string values only
        optional: dict[str, str] = {
            key: value
            for key, value in payload.items()
            if key in TaskEmailRequest.model_fields and isinstance(value, str)
        }
        return TaskEmailRequest(**{**optional, "to_email": to_email})

    def build_template_params(self, request: TaskEmailRequest) -> dict[str, str]:
        """메일 템플릿 파라미터를 만듭니다."""
        return {
            "to_email": request.to_email,
            "to_name": request.staff_name,
            "subject": f"📋 New Task Assigned: {request.task_title}",
            "staff_name": request.staff_name,
            "task_title": request.task_title,
            "task_description": request.task_description or "",
            "trashcan_name": request.trashcan_name or "",
            "location": request.location or "",
            "priority": request.priority or "medium",
            "due_date": request.due_date or "",
            "estimated_duration": request.estimated_duration or "",
            "assigned_date": request.assigned_date or datetime.now(timezone.utc).isoformat(),
            "company_name": settings.MAIL_COMPANY_NAME,
            "app_link": settings.MAIL_APP_LINK,
        }

    def render(self, params: dict[str, str]) -> tuple[str, str]:
        """(HTML, 텍스트) 본문을 렌더링합니다."""
        rows: list[tuple[str, str]] = [
            ("Task", params["task_title"]),
            ("Description", params["task_description"]),
            ("Trashcan", params["trashcan_name"]),
            ("Location", params["location"]),
            ("Priority", params["priority"]),
            ("Due date", params["due_date"]),
            ("Estimated duration", params["estimated_duration"]),
            ("Assigned", params["assigned_date"]),
        ]
        shown = [(label, value) for label, value in rows if value]

        html_rows = "".join(
            f"<tr><td style=\"color:#666;padding:4px 12px 4px 0;\">{label}</td>"
            f"<td style=\"font-weight:500;\">{escape_html(value)}</td></tr>"
            for label, value in shown
        )
        html = (
            f"<p>Hi {escape_html(params['staff_name'])},</p>"
            f"<p>A new task has been assigned to you.</p>"
            f"<table>{html_rows}</table>"
            f"<p><a href=\"{escape_html(params['app_link'])}\">Open your tasks</a></p>"
            f"<p style=\"color:#999;\">{escape_html(params['company_name'])}</p>"
        )
        text_rows = "\n".join(f"{label}: {value}" for label, value in shown)
        text = (
            f"Hi {params['staff_name']},\n\n"
            f"A new task has been assigned to you.\n\n"
            f"{text_rows}\n\n"
            f"Open your tasks: {params['app_link']}\n"
            f"{params['company_name']}\n"
        )
        return html, text

    async def send_task_email(self, request: TaskEmailRequest) -> MailRelayResult:
        """작업 배정 메일을 발송합니다.

        Send the task assignment email through the SMTP provider.

        Args:
            request: 검증된 요청 (Validated request)

        Returns:
            MailRelayResult: 발송 결과 (Outcome; never raises for provider failures)
        """
        params: dict[str, str] = self.build_template_params(request)
        html, text = self.render(params)
        logger.info("Sending task email to %s (task: %s, staff: %s)", request.to_email, request.task_title, request.staff_name)

        try:
            response: str = await asyncio.wait_for(
                email_utils.send_email(
                    to=request.to_email,
                    subject=params["subject"],
                    html=html,
                    text=text,
                    to_name=request.staff_name,
                    timeout=self.timeout,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, aiosmtplib.SMTPTimeoutError):
            logger.error("Mail provider did not respond within %.0fs", self.timeout)
            return MailRelayResult(
                success=False,
                kind="timeout",
                error="Request timeout - mail provider did not respond in time",
            )
        except aiosmtplib.SMTPRecipientsRefused as exc:
            refused = exc.recipients[0] if exc.recipients else None
            logger.error("Mail provider refused recipient %s: %s", request.to_email, exc)
            return MailRelayResult(
                success=False,
                kind="rejected",
                error=refused.message if refused else str(exc),
                status=refused.code if refused else None,
            )
        except aiosmtplib.SMTPResponseException as exc:
            logger.error("Mail provider error %s: %s", exc.code, exc.message)
            return MailRelayResult(success=False, kind="rejected", error=exc.message, status=exc.code)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.exception("Error sending task email")
            return MailRelayResult(success=False, kind="error", error=str(exc) or "Unknown error occurred")

        logger.info("Mail provider accepted task email: %s", response)
        return MailRelayResult(success=True, kind="sent", message="Email sent successfully", status=_reply_code(response))


def _reply_code(response: str) -> int | None:
    """'250 OK ...' 형식 응답에서 SMTP 코드를 추출합니다."""
    head = response.strip().split(" ", 1)[0] if response else ""
    return int(head) if head.isdigit() else None


# 싱글턴 인스턴스 — Singleton instance
mail_relay_service: MailRelayService = MailRelayService()
