"""알림 매니저 — 알림 클라이언트 구성 요소를 조립합니다.

Notification Manager — Process-scoped service that wires the change feed,
enrichment, store, presentation queue, acknowledgement and session lifecycle
together around injected collaborators.

Usage:
    manager = NotificationManager(identity, backend, task_directory, output)
    await manager.start()
    ...
    await manager.stop()
"""

import logging

from app.schemas.notification import NotificationRecord
from app.services.acknowledgement_service import AckResult, AcknowledgementService
from app.services.change_feed import ChangeFeedClient
from app.services.enrichment_service import EnrichmentService
from app.services.notification_store import NotificationStore
from app.services.ports import IdentityProvider, NotificationBackend, NotificationOutput, TaskDirectory
from app.services.presentation_service import PresentationQueue
from app.services.session_service import SessionLifecycleController

logger = logging.getLogger(__name__)


class NotificationManager:
    """알림 매니저.

    Attributes:
        store: 알림 저장소 (Notification store)
        presentation: 표시 큐 (Presentation queue)
        enrichment: 보강 서비스 (Enrichment service)
        feed: 변경 피드 클라이언트 (Change feed client)
        session: 세션 컨트롤러 (Session lifecycle controller)
        acknowledgement: 읽음 처리 서비스 (Acknowledgement service)
    """

    def __init__(
        self,
        identity: IdentityProvider,
        backend: NotificationBackend,
        task_directory: TaskDirectory,
        output: NotificationOutput,
        fetch_limit: int | None = None,
        timeout: float | None = None,
        close_delay: float | None = None,
    ) -> None:
        self.store: NotificationStore = NotificationStore()
        self.presentation: PresentationQueue = PresentationQueue(output, close_delay=close_delay)
        self.enrichment: EnrichmentService = EnrichmentService(task_directory, timeout=timeout)
        self.feed: ChangeFeedClient = ChangeFeedClient(backend, self._handle_record, timeout=timeout)
        self.session: SessionLifecycleController = SessionLifecycleController(
            identity,
            backend,
            self.feed,
            self.store,
            self.enrichment,
            self.presentation,
            fetch_limit=fetch_limit,
            timeout=timeout,
        )
        self.acknowledgement: AcknowledgementService = AcknowledgementService(
            backend,
            self.store,
            lambda: self.session.active_recipient,
            timeout=timeout,
        )
        self.presentation.set_activate_callback(self.acknowledgement.mark_read)
        self.store.subscribe(self.presentation.update_badge)

    # --- 수명주기 (Lifecycle) ---

    async def start(self) -> None:
        await self.session.start()
        logger.info("Notification manager initialized")

    async def stop(self) -> None:
        await self.session.stop()
        logger.info("Notification manager stopped")

    # --- 공개 API (Public API) ---

    def notifications(self) -> list[NotificationRecord]:
        return self.store.all()

    def unread_count(self) -> int:
        return self.store.unread_count()

    async def mark_read(self, notification_id: str) -> AckResult:
        return await self.acknowledgement.mark_read(notification_id)

    async def mark_all_read(self) -> AckResult:
        return await self.acknowledgement.mark_all_read()

    def dismiss(self, notification_id: str) -> bool:
        """팝업 닫기 버튼 (읽음 처리 없음)."""
        return self.presentation.dismiss(notification_id)

    async def activate(self, notification_id: str) -> AckResult | None:
        """팝업 클릭 — 읽음 처리 후 닫기."""
        return await self.presentation.activate(notification_id)

    # --- 파이프라인 (Pipeline) ---

    async def _handle_record(self, recipient_id: str, record: NotificationRecord) -> None:
        """피드로 도착한 알림 처리: 보강 → 저장 → 표시 → 알림음.

        The record is dropped if the session moved on while it was being
        enriched, or if the store already holds its id.
        """
        logger.info("New notification received: %s (%s)", record.id, "broadcast" if record.is_broadcast else "own")
        enriched: NotificationRecord = await self.enrichment.enrich(record)

        if self.session.active_recipient != recipient_id:
            logger.debug("Discarding notification %s for inactive recipient %s", record.id, recipient_id)
            return
        if not self.store.insert(enriched):
            return

        self.presentation.display(enriched)
        self.presentation.play_sound()
