"""함수 엔드포인트 HTTP 오류.

HTTPException subclasses named by meaning. FastAPI renders each one as
``{"detail": "<message>"}`` with the matching status code.
"""

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    """400 — 필수 값 누락, 잘못된 JSON 등 (Missing fields, malformed JSON)."""

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    """401 — 토큰 없음, 위조, 만료."""

    def __init__(self, detail: str = "Not authenticated") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenError(HTTPException):
    """403 — 관리자가 아닌 호출자 (Caller is not an admin)."""

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class DuplicateError(HTTPException):
    """409 — 같은 이메일의 계정이 이미 있음."""

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ServiceError(HTTPException):
    """500 — 저장 실패 (Persistence failure)."""

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
