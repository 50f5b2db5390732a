"""세션 수명주기 테스트.

Session lifecycle tests — Sign-in catch-up display, sign-out teardown and
identity switching without cross-identity leakage.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.adapters.logging_output import LoggingNotificationOutput
from app.adapters.session_identity import SessionIdentityProvider
from app.config import settings
from app.schemas.notification import TaskReference
from app.services.notification_manager import NotificationManager
from app.services.session_service import SessionState
from app.utils.jwt import create_access_token
from tests.conftest import (
    BASE_TIME,
    USER_A,
    USER_B,
    FakeBackend,
    FakeTaskDirectory,
    RecordingOutput,
    make_record,
    make_token,
    settle,
)


def _manager(identity, backend, tasks, output) -> NotificationManager:
    return NotificationManager(identity, backend, tasks, output, close_delay=0)


class TestSignIn:
    """로그인 전이 테스트."""

    async def test_unread_records_are_displayed_on_sign_in(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.records = [
            make_record("u1", minutes_ago=1),
            make_record("u2", minutes_ago=2, user_id=None),
            make_record("r1", minutes_ago=3, is_read=True, read_at=BASE_TIME),
        ]
        manager = _manager(SessionIdentityProvider(USER_A), backend, tasks, output)
        await manager.start()

        assert manager.session.state is SessionState.SIGNED_IN
        assert [r.id for r in manager.notifications()] == ["u1", "u2", "r1"]
        assert sorted(output.shown_ids) == ["u1", "u2"]
        assert manager.unread_count() == 2
        assert output.badges[-1] == (2, "(2) Smart Trashcan App")
        assert USER_A in backend.subscriptions
        assert output.sounds == 0
        await manager.stop()

    async def test_start_signed_out_does_nothing(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        manager = _manager(SessionIdentityProvider(), backend, tasks, output)
        await manager.start()
        assert manager.session.state is SessionState.SIGNED_OUT
        assert backend.fetch_calls == []
        assert backend.subscriptions == {}

    async def test_feed_failure_still_loads(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.fail_subscribe = True
        backend.records = [make_record("u1")]
        manager = _manager(SessionIdentityProvider(USER_A), backend, tasks, output)
        await manager.start()

        assert not manager.feed.connected
        assert output.shown_ids == ["u1"]
        await manager.stop()

    async def test_repeated_sign_in_of_same_user_is_ignored(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        identity = SessionIdentityProvider(USER_A)
        manager = _manager(identity, backend, tasks, output)
        await manager.start()
        await identity.sign_in(USER_A)
        assert backend.fetch_calls == [USER_A]
        await manager.stop()

    async def test_live_arrival_during_initial_fetch_is_kept(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.records = [make_record("old", minutes_ago=5)]
        backend.fetch_gate = asyncio.Event()
        manager = _manager(SessionIdentityProvider(USER_A), backend, tasks, output)

        starting = asyncio.ensure_future(manager.start())
        await settle()
        assert backend.fetch_calls == [USER_A]

        # 조회가 끝나기 전에 실시간 피드로 도착 (arrives before the fetch returns)
        on_own, _ = backend.subscriptions[USER_A]
        on_own(make_record("live"))
        await settle()
        assert [r.id for r in manager.notifications()] == ["live"]

        backend.fetch_gate.set()
        await starting

        assert [r.id for r in manager.notifications()] == ["live", "old"]
        assert manager.unread_count() == 2
        assert output.shown_ids == ["live", "old"]
        assert output.badges[-1] == (2, "(2) Smart Trashcan App")

        result = await manager.activate("live")
        assert result.ok and manager.unread_count() == 1
        await manager.stop()

    async def test_refresh_drops_records_missing_from_fetch(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.records = [make_record("kept", minutes_ago=1), make_record("gone", minutes_ago=2)]
        manager = _manager(SessionIdentityProvider(USER_A), backend, tasks, output)
        await manager.start()

        backend.records = [r for r in backend.records if r.id == "kept"]
        await manager.session.refresh()

        assert [r.id for r in manager.notifications()] == ["kept"]
        await manager.stop()


class TestSignOut:
    """로그아웃 전이 테스트."""

    async def test_sign_out_tears_down(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.records = [make_record("u1")]
        identity = SessionIdentityProvider(USER_A)
        manager = _manager(identity, backend, tasks, output)
        await manager.start()

        await identity.sign_out()

        assert manager.session.state is SessionState.SIGNED_OUT
        assert manager.notifications() == []
        assert backend.unsubscribed == [USER_A]
        assert output.detached == ["u1"]
        assert output.badges[-1] == (0, "Smart Trashcan App")

    async def test_stop_ignores_later_identity_changes(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        identity = SessionIdentityProvider(USER_A)
        manager = _manager(identity, backend, tasks, output)
        await manager.start()
        await manager.stop()

        await identity.sign_in(USER_B)
        assert manager.session.state is SessionState.SIGNED_OUT
        assert backend.fetch_calls == [USER_A]


class TestIdentitySwitch:
    """사용자 전환 테스트."""

    async def test_switch_disconnects_previous_subscription_first(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        backend.records = [make_record("a1"), make_record("b1", user_id=USER_B)]
        identity = SessionIdentityProvider(USER_A)
        manager = _manager(identity, backend, tasks, output)
        await manager.start()
        old_own, old_broadcast = backend.subscriptions[USER_A]

        await identity.sign_in(USER_B)

        assert backend.unsubscribed == [USER_A]
        assert list(backend.subscriptions) == [USER_B]
        assert [r.id for r in manager.notifications()] == ["b1"]

        # 이전 구독 핸들로 늦게 도착한 콜백은 전달되지 않음
        old_own(make_record("a2"))
        old_broadcast(make_record("x1", user_id=None))
        await settle()
        assert [r.id for r in manager.notifications()] == ["b1"]
        assert "a2" not in output.shown_ids
        await manager.stop()

    async def test_in_flight_enrichment_for_previous_user_is_discarded(
        self, backend: FakeBackend, tasks: FakeTaskDirectory, output: RecordingOutput
    ):
        tasks.tasks["t1"] = TaskReference(created_at=BASE_TIME)
        tasks.delay = 0.05
        identity = SessionIdentityProvider(USER_A)
        manager = _manager(identity, backend, tasks, output)
        await manager.start()

        backend.emit(make_record("a1", task_id="t1"))
        await settle()
        assert tasks.calls == ["t1"]

        await identity.sign_in(USER_B)
        await asyncio.sleep(0.1)

        assert manager.session.active_recipient == USER_B
        assert manager.notifications() == []
        assert "a1" not in output.shown_ids
        await manager.stop()


class TestLoggingOutput:
    """로그 출력 어댑터 테스트."""

    async def test_tracks_title_and_visible_alerts(self, backend: FakeBackend, tasks: FakeTaskDirectory):
        output = LoggingNotificationOutput()
        backend.records = [make_record("u1")]
        manager = _manager(SessionIdentityProvider(USER_A), backend, tasks, output)
        await manager.start()

        assert output.title == "(1) Smart Trashcan App"
        assert list(output.visible) == ["u1"]

        manager.dismiss("u1")
        await settle()
        assert output.visible == {}
        await manager.stop()
        assert output.title == "Smart Trashcan App"


class TestTokenSignIn:
    """토큰 로그인 테스트."""

    async def test_access_token_signs_in_subject(self):
        identity = SessionIdentityProvider()
        changes: list[str | None] = []

        async def _record(recipient_id: str | None) -> None:
            changes.append(recipient_id)

        identity.on_identity_change(_record)

        assert await identity.sign_in_with_token(make_token(USER_A)) == USER_A
        assert await identity.get_current_identity() == USER_A
        assert changes == [USER_A]

    async def test_non_access_token_is_rejected(self):
        token = jwt.encode(
            {"sub": USER_A, "type": "refresh", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        identity = SessionIdentityProvider()

        with pytest.raises(jwt.InvalidTokenError):
            await identity.sign_in_with_token(token)
        assert await identity.get_current_identity() is None

    async def test_token_without_subject_is_rejected(self):
        identity = SessionIdentityProvider()
        with pytest.raises(ValueError):
            await identity.sign_in_with_token(create_access_token({"role": "staff"}))
        assert await identity.get_current_identity() is None
