"""세션 수명주기 컨트롤러 — 로그인 상태에 따라 구독을 묶고 풉니다.

Session Lifecycle Controller — Binds the feed, store and presentation queue
to the signed-in identity.

States:
    SIGNED_OUT ──sign in(A)──▶ SIGNED_IN(A): connect feed, bulk load, show unread
    SIGNED_IN(A) ──sign out──▶ SIGNED_OUT: disconnect feed, clear store and alerts
    SIGNED_IN(A) ──sign in(B)──▶ SIGNED_IN(B): full sign-out of A first, then sign-in of B

Transitions are serialized with an ``asyncio.Lock`` so two identity changes
never interleave their awaits.
"""

import asyncio
import logging
from enum import Enum

from app.config import settings
from app.schemas.notification import NotificationRecord
from app.services.change_feed import ChangeFeedClient
from app.services.enrichment_service import EnrichmentService
from app.services.notification_store import NotificationStore
from app.services.ports import IdentityProvider, NotificationBackend
from app.services.presentation_service import PresentationQueue

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """세션 상태."""

    SIGNED_OUT = "signed_out"
    SIGNED_IN = "signed_in"


class SessionLifecycleController:
    """세션 수명주기 컨트롤러.

    ``active_recipient`` is the guard every late-arriving result checks
    before mutating the store: work started for an identity that is no
    longer active is discarded.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        backend: NotificationBackend,
        feed: ChangeFeedClient,
        store: NotificationStore,
        enrichment: EnrichmentService,
        presentation: PresentationQueue,
        fetch_limit: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._identity: IdentityProvider = identity
        self._backend: NotificationBackend = backend
        self._feed: ChangeFeedClient = feed
        self._store: NotificationStore = store
        self._enrichment: EnrichmentService = enrichment
        self._presentation: PresentationQueue = presentation
        self._fetch_limit: int = fetch_limit or settings.NOTIFICATION_FETCH_LIMIT
        self._timeout: float = timeout if timeout is not None else settings.BACKEND_CALL_TIMEOUT_SECONDS

        self._state: SessionState = SessionState.SIGNED_OUT
        self._recipient: str | None = None
        self._lock: asyncio.Lock = asyncio.Lock()
        self._running: bool = False
        self._listening: bool = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_recipient(self) -> str | None:
        return self._recipient

    async def start(self) -> None:
        """현재 로그인 사용자를 조회하고 상태 변경 리스너를 등록합니다."""
        if self._running:
            return
        self._running = True
        if not self._listening:
            self._identity.on_identity_change(self.handle_identity_change)
            self._listening = True

        try:
            current: str | None = await asyncio.wait_for(
                self._identity.get_current_identity(), timeout=self._timeout
            )
        except Exception:
            logger.exception("Error getting current user")
            current = None
        await self.handle_identity_change(current)

    async def stop(self) -> None:
        """구독을 해제하고 이후 상태 변경을 무시합니다."""
        self._running = False
        async with self._lock:
            await self._sign_out()

    async def handle_identity_change(self, recipient_id: str | None) -> None:
        """인증 상태 변경을 세션 전이로 반영합니다.

        Apply an identity change. ``None`` signs out; a different id signs
        the previous identity out before signing the new one in.
        """
        if not self._running:
            return
        async with self._lock:
            if recipient_id is None:
                await self._sign_out()
                return
            if self._state is SessionState.SIGNED_IN and self._recipient == recipient_id:
                return
            if self._state is SessionState.SIGNED_IN:
                await self._sign_out()
            await self._sign_in(recipient_id)

    async def refresh(self) -> None:
        """현재 수신자의 알림을 다시 불러옵니다."""
        recipient: str | None = self._recipient
        if recipient is not None:
            await self._load(recipient)

    # --- 전이 (Transitions) ---

    async def _sign_in(self, recipient_id: str) -> None:
        self._recipient = recipient_id
        self._state = SessionState.SIGNED_IN
        logger.info("Signed in as %s", recipient_id)

        try:
            await self._feed.connect(recipient_id)
        except Exception:
            logger.exception("Error starting notification listener (recipient %s)", recipient_id)

        await self._load(recipient_id)

    async def _sign_out(self) -> None:
        if self._state is SessionState.SIGNED_OUT:
            return
        previous: str | None = self._recipient
        self._recipient = None
        self._state = SessionState.SIGNED_OUT

        await self._feed.disconnect()
        self._presentation.clear()
        self._store.clear()
        logger.info("Signed out %s", previous)

    async def _load(self, recipient_id: str) -> None:
        """최근 알림을 불러와 보강하고, 미읽음 알림을 표시합니다.

        조회 중에 실시간 피드로 들어온 알림은 조회 결과에 없더라도 유지합니다.
        (Records the live feed inserted while the fetch was running survive
        the replacement even when the snapshot predates them.)
        """
        known_before: set[str] = {record.id for record in self._store.all()}
        try:
            records = await asyncio.wait_for(
                self._backend.fetch_recent(recipient_id, self._fetch_limit), timeout=self._timeout
            )
        except Exception:
            logger.exception("Error loading notifications (recipient %s)", recipient_id)
            return

        enriched: list[NotificationRecord] = await self._enrichment.enrich_many(list(records))
        if self._recipient != recipient_id:
            logger.debug("Discarding bulk load for inactive recipient %s", recipient_id)
            return

        fetched_ids: set[str] = {record.id for record in enriched}
        arrived: list[NotificationRecord] = [
            record
            for record in self._store.all()
            if record.id not in known_before and record.id not in fetched_ids
        ]
        self._store.bulk_load(enriched + arrived)
        for record in self._store.unread():
            if record.id in fetched_ids:
                self._presentation.display(record)
