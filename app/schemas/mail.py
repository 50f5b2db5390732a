"""작업 배정 메일 릴레이 Pydantic 스키마 정의.

Task assignment mail relay schema definitions.
"""

from typing import Literal

from pydantic import BaseModel
from fastapi import status

# 메일 발송 결과 유형 — Mail relay outcome kinds
MailRelayKind = Literal["sent", "rejected", "timeout", "error"]


class TaskEmailRequest(BaseModel):
    """작업 배정 메일 요청 스키마.

    Attributes:
        to_email: 수신자 이메일 ('@' 포함 필수) (Recipient email, must contain '@')
        staff_name: 직원 이름 (Staff name, non-empty)
        task_title: 작업 제목 (Task title, non-empty)
    """

    to_email: str
    staff_name: str
    task_title: str
    task_description: str | None = None
    trashcan_name: str | None = None
    location: str | None = None
    priority: str | None = None
    due_date: str | None = None
    estimated_duration: str | None = None
    assigned_date: str | None = None


class MailRelayResult(BaseModel):
    """메일 발송 결과.

    ``timeout`` (no response from the provider) and ``rejected`` (the
    provider answered with an error) are distinct outcomes.

    Attributes:
        success: 성공 여부 (Whether the provider accepted the message)
        kind: 결과 유형 (sent | rejected | timeout | error)
        message: 성공 메시지 (Success message)
        error: 실패 사유 (Failure reason)
        status: 공급자 응답 코드 (Provider's raw status code, when it answered)
    """

    success: bool
    kind: MailRelayKind
    message: str | None = None
    error: str | None = None
    status: int | None = None

    @property
    def http_status(self) -> int:
        return {
            "sent": status.HTTP_200_OK,
            "rejected": status.HTTP_502_BAD_GATEWAY,
            "timeout": status.HTTP_504_GATEWAY_TIMEOUT,
            "error": status.HTTP_500_INTERNAL_SERVER_ERROR,
        }[self.kind]
