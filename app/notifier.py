"""알림 클라이언트 실행 스크립트 — 실시간 알림 수신.

Notifier runner — Signs in one recipient, keeps the live notification feed
open and renders alerts to the log until interrupted.

Usage:
    python -m app.notifier --token <access token>
    python -m app.notifier --user-id <uuid> --bell
"""

import argparse
import asyncio
import logging

import jwt

from app.adapters.logging_output import LoggingNotificationOutput
from app.adapters.postgres_backend import PostgresNotificationBackend, PostgresTaskDirectory
from app.adapters.session_identity import SessionIdentityProvider
from app.config import settings
from app.database import create_session_factory
from app.models import Notification, Task, User  # noqa: F401 (register FK targets with the metadata)
from app.services.notification_manager import NotificationManager

logger = logging.getLogger("app.notifier")


def parse_args() -> argparse.Namespace:
    """명령행 인자를 파싱합니다."""
    parser = argparse.ArgumentParser(
        description="Receive live task notifications for one user.",
    )
    who = parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--token", help="Access token; the user is taken from its subject")
    who.add_argument("--user-id", help="User id to receive notifications for")
    parser.add_argument(
        "--database-url",
        default=settings.DATABASE_URL,
        help="Async SQLAlchemy URL (default: DATABASE_URL setting)",
    )
    parser.add_argument("--bell", action="store_true", help="Ring the terminal bell on new notifications")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    """매니저를 시작하고 취소될 때까지 실행합니다."""
    engine, session_factory = create_session_factory(args.database_url)
    backend = PostgresNotificationBackend(session_factory, args.database_url)
    identity = SessionIdentityProvider()
    manager = NotificationManager(
        identity,
        backend,
        PostgresTaskDirectory(session_factory),
        LoggingNotificationOutput(bell=args.bell),
    )

    await manager.start()
    try:
        if args.token:
            try:
                recipient = await identity.sign_in_with_token(args.token)
            except (jwt.InvalidTokenError, ValueError) as exc:
                raise SystemExit(f"Invalid access token: {exc}") from exc
        else:
            recipient = args.user_id
            await identity.sign_in(recipient)

        logger.info(
            "Listening for notifications for %s (%d unread)",
            recipient,
            manager.unread_count(),
        )
        await asyncio.Event().wait()
    finally:
        await manager.stop()
        await engine.dispose()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Notifier stopped")


if __name__ == "__main__":
    main()
