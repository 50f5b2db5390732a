"""작업 배정 메일 라우터.

Task email router — Relays task assignment emails to the SMTP provider.
The body is parsed by hand so malformed JSON yields a 400 with a readable
reason instead of a validation error list.
"""

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.schemas.mail import MailRelayResult
from app.services.mail_relay_service import mail_relay_service
from app.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


@router.post("/send-task-email", response_model=MailRelayResult)
async def send_task_email(request: Request) -> JSONResponse:
    """작업 배정 메일을 발송합니다.

    Send a task assignment email. The response status reflects the relay
    outcome: 200 sent, 502 rejected, 504 timeout, 500 error.

    Args:
        request: 원본 요청 (Raw request)

    Returns:
        JSONResponse: 발송 결과 (MailRelayResult body)
    """
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Invalid JSON in request body")

    task_email = mail_relay_service.validate(payload)
    result: MailRelayResult = await mail_relay_service.send_task_email(task_email)
    return JSONResponse(
        status_code=result.http_status,
        content=result.model_dump(exclude_none=True),
    )
