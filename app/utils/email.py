"""SMTP 메일 발송 유틸리티 (aiosmtplib).

Outbound SMTP for the mail relay. Connection settings come from the SMTP_*
settings; STARTTLS is always used.
"""

from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from app.config import settings


def build_message(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
    to_name: str | None = None,
) -> EmailMessage:
    """텍스트/HTML 대체 본문을 가진 메시지를 만듭니다."""
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM_EMAIL))
    message["To"] = formataddr((to_name, to)) if to_name else to
    message.set_content(text or "This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
    to_name: str | None = None,
    timeout: float | None = None,
) -> str:
    """메일을 발송하고 서버의 최종 응답을 반환합니다.

    Args:
        to: 수신자 주소 (Recipient address)
        subject: 제목 (Subject line)
        html: HTML 본문 (HTML body)
        text: 텍스트 본문 (Plain text alternative)
        to_name: 수신자 표시 이름 (Recipient display name)
        timeout: SMTP 단계별 제한 시간 초 (Per-step SMTP timeout in seconds)

    Returns:
        str: 서버 응답, 예: "250 2.0.0 OK" (Final server reply)

    Raises:
        aiosmtplib.SMTPException: 연결 실패, 제한 시간 초과, 서버 거부
            (Connection failure, timeout or rejection)
    """
    _refused, response = await aiosmtplib.send(
        build_message(to, subject, html, text, to_name),
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
        timeout=timeout,
    )
    return response
