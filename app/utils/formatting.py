"""알림 표시용 시각/텍스트 포맷 유틸리티.

Time and text formatting helpers used when rendering notifications.
All functions are pure: ``now`` can be passed in, and when omitted the current
UTC time is used, so values are re-evaluated on every call.
"""

import html
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.config import settings

_MONTHS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _aware(value: datetime) -> datetime:
    # naive 값은 UTC로 간주 — Naive datetimes are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _display_zone() -> ZoneInfo:
    return ZoneInfo(settings.DISPLAY_TIMEZONE)


def _clock(value: datetime) -> str:
    """'2:30 PM' 형식의 12시간제 시각."""
    hour: int = value.hour % 12 or 12
    suffix: str = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def to_iso(value: datetime) -> str:
    """UTC ISO-8601 문자열로 변환합니다 ('Z' 접미사).

    Serialize a timestamp as UTC ISO-8601 with a ``Z`` suffix.
    """
    return _aware(value).astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def format_date_time(value: datetime | None, now: datetime | None = None) -> str:
    """작업 배정/완료 시각을 사람이 읽을 수 있는 문자열로 변환합니다.

    Render an assignment/completion timestamp.
    Under 24 hours old: ``"<N>m ago at 2:30 PM"`` (under an hour) or
    ``"<N>h ago at 2:30 PM"``. Older: ``"Jan 15, 2024 at 2:30 PM"``.

    Args:
        value: 변환할 시각 (Timestamp to render; None renders as empty string)
        now: 기준 시각 (Reference time, defaults to current UTC time)

    Returns:
        str: 표시용 문자열 (Display string)
    """
    if value is None:
        return ""
    value = _aware(value)
    now = _aware(now) if now is not None else datetime.now(timezone.utc)

    # 미래 시각은 0으로 고정 — Future timestamps clamp to zero elapsed
    elapsed_seconds: int = max(0, int((now - value).total_seconds()))
    minutes: int = elapsed_seconds // 60
    hours: int = minutes // 60

    local: datetime = value.astimezone(_display_zone())
    if hours < 24:
        if minutes < 60:
            return f"{minutes}m ago at {_clock(local)}"
        return f"{hours}h ago at {_clock(local)}"

    return f"{_MONTHS[local.month - 1]} {local.day}, {local.year} at {_clock(local)}"


def format_time(value: datetime, now: datetime | None = None) -> str:
    """알림 생성 시각을 짧은 상대 시간으로 변환합니다.

    Short relative time for the alert footer: ``Just now``, ``5m ago``,
    ``3h ago``, ``2d ago``; a week or older falls back to ``M/D/YYYY``.
    """
    value = _aware(value)
    now = _aware(now) if now is not None else datetime.now(timezone.utc)

    seconds: int = max(0, int((now - value).total_seconds()))
    minutes: int = seconds // 60
    hours: int = minutes // 60
    days: int = hours // 24

    if seconds < 60:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"

    local: datetime = value.astimezone(_display_zone())
    return f"{local.month}/{local.day}/{local.year}"


def escape_html(text: str | None) -> str:
    """신뢰할 수 없는 텍스트를 HTML 이스케이프합니다."""
    if text is None:
        return ""
    return html.escape(str(text), quote=True)
