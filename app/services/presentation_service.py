"""표시 큐 — 알림 팝업, 배지, 알림음.

Presentation Queue — Renders notifications as transient, dismissible alerts
through the ``NotificationOutput`` port, keeps at most one visible alert per
notification id, and publishes the unread badge.

Each alert leaves the screen through one of three triggers: the close action
(no read-marking), a primary click (read-marking, then close), or the
auto-dismiss timer. Closing is staged: the output is told the alert is closing
and the alert is detached after a short transition delay.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.config import settings
from app.schemas.notification import (
    TASK_NOTIFICATION_TYPES,
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from app.services.ports import NotificationOutput
from app.utils.formatting import escape_html, format_time

logger = logging.getLogger(__name__)

# 유형별 아이콘/강조색 — Icon and accent color per notification type
ALERT_STYLES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.TRASHCAN_FULL: ("🚨", "#f44336"),
    NotificationType.TASK_ASSIGNED: ("📋", "#2196F3"),
    NotificationType.TASK_COMPLETED: ("✅", "#4CAF50"),
    NotificationType.TASK_REMINDER: ("⏰", "#FF9800"),
    NotificationType.MAINTENANCE_REQUIRED: ("🔧", "#FF5722"),
    NotificationType.SYSTEM_ALERT: ("⚠️", "#9C27B0"),
}

# 작업 상세 블록 항목 — (data key, icon, label)
_DETAIL_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("assigned_time", "📅", "Assigned"),
    ("completed_time", "✅", "Completed"),
    ("staff_name", "👤", "Staff"),
)

# 클릭 처리기 — Read-marking callback triggered by a primary click
ActivateCallback = Callable[[str], Awaitable[Any]]


class AlertDetail(BaseModel):
    """작업 상세 한 줄 (이스케이프된 값)."""

    icon: str
    label: str
    value: str


class Alert(BaseModel):
    """렌더링 준비가 끝난 팝업 뷰 모델.

    Render-ready alert. ``title``, ``body`` and detail values are already
    HTML-escaped; ``html`` is the complete markup for HTML hosts.
    """

    notification_id: str
    type: NotificationType
    priority: NotificationPriority
    icon: str
    color: str
    title: str
    body: str
    details: list[AlertDetail] = []
    time_label: str
    priority_label: str | None = None
    timeout: float
    html: str = ""


def alert_style(notification_type: NotificationType | str) -> tuple[str, str]:
    """유형의 (아이콘, 색상). 알 수 없는 유형은 system_alert 스타일."""
    try:
        return ALERT_STYLES[NotificationType(notification_type)]
    except ValueError:
        return ALERT_STYLES[NotificationType.SYSTEM_ALERT]


def dismiss_timeout(priority: NotificationPriority) -> float:
    """자동 닫힘 시간 — urgent는 10초, 나머지는 5초 (설정값)."""
    if priority is NotificationPriority.URGENT:
        return settings.URGENT_ALERT_TIMEOUT_SECONDS
    return settings.ALERT_TIMEOUT_SECONDS


def build_alert(
    record: NotificationRecord,
    timeout: float,
    now: datetime | None = None,
) -> Alert:
    """알림 레코드로부터 팝업 뷰 모델을 만듭니다.

    Build the alert for a record: style by type, escaped text, the task
    detail block for task notifications with data, and the priority label for
    high/urgent priorities.
    """
    icon, color = alert_style(record.type)

    details: list[AlertDetail] = []
    if record.type in TASK_NOTIFICATION_TYPES and record.data:
        for key, detail_icon, label in _DETAIL_FIELDS:
            value = record.data.get(key)
            if value:
                details.append(AlertDetail(icon=detail_icon, label=label, value=escape_html(value)))

    priority_label: str | None = None
    if record.priority in (NotificationPriority.URGENT, NotificationPriority.HIGH):
        priority_label = record.priority.value.upper()

    alert = Alert(
        notification_id=record.id,
        type=record.type,
        priority=record.priority,
        icon=icon,
        color=color,
        title=escape_html(record.title),
        body=escape_html(record.body),
        details=details,
        time_label=format_time(record.created_at, now),
        priority_label=priority_label,
        timeout=timeout,
    )
    alert.html = render_alert_html(alert)
    return alert


def render_alert_html(alert: Alert) -> str:
    """팝업 HTML 마크업을 생성합니다. 모든 텍스트는 이미 이스케이프된 상태."""
    detail_rows: str = "".join(
        f'<div class="notification-detail"><span>{d.icon} {d.label}:</span> '
        f"<strong>{d.value}</strong></div>"
        for d in alert.details
    )
    details_html: str = f'<div class="notification-details">{detail_rows}</div>' if detail_rows else ""
    priority_html: str = (
        f'<span class="notification-priority" style="color: {alert.color};">{alert.priority_label}</span>'
        if alert.priority_label
        else ""
    )
    return (
        f'<div class="notification-popup" data-notification-id="{escape_html(alert.notification_id)}" '
        f'style="border-left: 4px solid {alert.color};">'
        f'<div class="notification-icon" style="background: {alert.color}20;">{alert.icon}</div>'
        f'<div class="notification-content">'
        f'<div class="notification-title">{alert.title}</div>'
        f'<div class="notification-body">{alert.body}</div>'
        f"{details_html}"
        f'<div class="notification-meta"><span>{alert.time_label}</span>{priority_html}</div>'
        f"</div>"
        f'<button class="notification-close" type="button">×</button>'
        f"</div>"
    )


class _VisibleAlert:
    """화면에 떠 있는 팝업과 타이머."""

    __slots__ = ("alert", "timer", "detach_timer", "closing")

    def __init__(self, alert: Alert) -> None:
        self.alert: Alert = alert
        self.timer: asyncio.TimerHandle | None = None
        self.detach_timer: asyncio.TimerHandle | None = None
        self.closing: bool = False


class PresentationQueue:
    """표시 큐.

    Presentation queue keyed by notification id. Must be used from within a
    running event loop (timers use ``loop.call_later``).
    """

    def __init__(
        self,
        output: NotificationOutput,
        on_activate: ActivateCallback | None = None,
        close_delay: float | None = None,
        app_title: str | None = None,
    ) -> None:
        self._output: NotificationOutput = output
        self._on_activate: ActivateCallback | None = on_activate
        self._close_delay: float = close_delay if close_delay is not None else settings.ALERT_CLOSE_DELAY_SECONDS
        self._app_title: str = app_title or settings.APP_TITLE
        self._visible: dict[str, _VisibleAlert] = {}

    def set_activate_callback(self, on_activate: ActivateCallback) -> None:
        self._on_activate = on_activate

    # --- 조회 (Queries) ---

    def visible_ids(self) -> set[str]:
        """현재 화면에 있는(닫히는 중 포함) 알림 ID."""
        return set(self._visible)

    def is_visible(self, notification_id: str) -> bool:
        entry = self._visible.get(notification_id)
        return entry is not None and not entry.closing

    # --- 표시 (Display) ---

    def display(self, record: NotificationRecord, timeout: float | None = None) -> Alert | None:
        """알림 팝업을 띄우고 자동 닫힘 타이머를 설정합니다.

        Show an alert for ``record`` unless one is already visible for the
        same id.

        Args:
            record: 표시할 알림 (Notification to show)
            timeout: 자동 닫힘 시간 재정의 (Override for the auto-dismiss delay)

        Returns:
            Alert | None: 표시된 팝업, 이미 떠 있으면 None (The alert, or None when already shown)
        """
        if record.id in self._visible:
            return None

        alert: Alert = build_alert(record, timeout if timeout is not None else dismiss_timeout(record.priority))
        entry = _VisibleAlert(alert)
        self._visible[record.id] = entry
        self._output.show_alert(alert)

        loop = asyncio.get_running_loop()
        entry.timer = loop.call_later(alert.timeout, self._expire, record.id)
        return alert

    def dismiss(self, notification_id: str) -> bool:
        """닫기 버튼 — 읽음 처리 없이 팝업을 닫습니다."""
        return self._close(notification_id)

    async def activate(self, notification_id: str) -> Any:
        """팝업 본문 클릭 — 읽음 처리를 시작하고 팝업을 닫습니다.

        Primary click: trigger read-marking for the notification, then close
        the alert. Returns the read-marking result once it completes.
        """
        pending: asyncio.Future | None = None
        if self._on_activate is not None:
            pending = asyncio.ensure_future(self._on_activate(notification_id))
        self._close(notification_id)
        if pending is None:
            return None
        return await pending

    def clear(self) -> None:
        """모든 팝업과 타이머를 즉시 제거합니다 (로그아웃 시)."""
        for notification_id, entry in list(self._visible.items()):
            for handle in (entry.timer, entry.detach_timer):
                if handle is not None:
                    handle.cancel()
            self._visible.pop(notification_id, None)
            self._output.detach_alert(notification_id)

    # --- 배지/알림음 (Badge and sound) ---

    def update_badge(self, unread_count: int) -> None:
        """미읽음 수와 페이지 제목을 출력 포트에 알립니다."""
        title: str = f"({unread_count}) {self._app_title}" if unread_count > 0 else self._app_title
        self._output.badge_changed(unread_count, title)

    def play_sound(self) -> None:
        """알림음 재생 — 실패는 표시 경로에 영향을 주지 않습니다."""
        try:
            self._output.play_alert_sound()
        except Exception as exc:
            logger.debug("Alert sound unavailable: %s", exc)

    # --- 내부 (Internals) ---

    def _expire(self, notification_id: str) -> None:
        entry = self._visible.get(notification_id)
        if entry is not None:
            entry.timer = None
        self._close(notification_id)

    def _close(self, notification_id: str) -> bool:
        entry = self._visible.get(notification_id)
        if entry is None or entry.closing:
            return False
        entry.closing = True
        if entry.timer is not None:
            entry.timer.cancel()
            entry.timer = None
        self._output.close_alert(notification_id)

        loop = asyncio.get_running_loop()
        entry.detach_timer = loop.call_later(self._close_delay, self._detach, notification_id)
        return True

    def _detach(self, notification_id: str) -> None:
        if self._visible.pop(notification_id, None) is not None:
            self._output.detach_alert(notification_id)
