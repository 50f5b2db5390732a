"""비밀번호 해싱 유틸리티 모듈.

Password hashing utility for new login identities (bcrypt).
"""

import bcrypt

# bcrypt 입력 한도 — bcrypt only reads the first 72 bytes
MAX_PASSWORD_BYTES: int = 72


def hash_password(password: str) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Args:
        password: 평문 비밀번호 (Plain text password)

    Returns:
        str: bcrypt 해시 문자열 (Salted bcrypt hash, ~60 chars)

    Raises:
        ValueError: 72바이트 초과 (Password longer than 72 bytes when UTF-8 encoded)
    """
    encoded: bytes = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")
