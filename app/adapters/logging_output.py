"""로그 기반 표시 출력 어댑터.

Headless ``NotificationOutput`` that writes alerts, badge updates and sound
requests to the log. Used by the notifier runner when no UI host is attached.
"""

import logging
import sys

from app.config import settings
from app.services.presentation_service import Alert

logger = logging.getLogger(__name__)


class LoggingNotificationOutput:
    """로그 출력 어댑터.

    Attributes:
        title: 배지가 반영된 페이지 제목 (Page title carrying the unread badge)
        unread_count: 마지막으로 알린 미읽음 수 (Last published unread count)
        visible: 화면에 있는 팝업 (Alerts currently shown)
    """

    def __init__(self, bell: bool = False) -> None:
        self.title: str = settings.APP_TITLE
        self.unread_count: int = 0
        self.visible: dict[str, Alert] = {}
        self._bell: bool = bell

    def show_alert(self, alert: Alert) -> None:
        self.visible[alert.notification_id] = alert
        details = "; ".join(f"{d.label}: {d.value}" for d in alert.details)
        logger.info(
            "%s [%s] %s: %s%s",
            alert.icon,
            alert.priority_label or alert.priority.value,
            alert.title,
            alert.body,
            f" ({details})" if details else "",
        )

    def close_alert(self, notification_id: str) -> None:
        logger.debug("Closing alert %s", notification_id)

    def detach_alert(self, notification_id: str) -> None:
        self.visible.pop(notification_id, None)

    def badge_changed(self, unread_count: int, title: str) -> None:
        self.unread_count = unread_count
        self.title = title
        logger.info("Unread notifications: %d", unread_count)

    def play_alert_sound(self) -> None:
        if self._bell:
            sys.stdout.write("\a")
            sys.stdout.flush()
