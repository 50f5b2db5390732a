"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package registers every model with the metadata.

Modules:
    identity: 인증 계정 (Authentication identities)
    user: 사용자 프로필 (User profiles)
    task: 작업 (Tasks)
    notification: 알림 (Notifications)
"""

from app.models.identity import AuthIdentity
from app.models.user import User
from app.models.task import Task
from app.models.notification import Notification

__all__ = [
    "AuthIdentity",
    "User",
    "Task",
    "Notification",
]
