"""변경 피드 클라이언트 — 실시간 알림 구독.

Change Feed Client — Live subscription to newly inserted notifications.

A subscription covers two logical streams for one recipient: rows addressed
to the recipient ("own") and rows with no recipient ("broadcast"). Backend
callbacks only enqueue; each stream has its own worker that runs the
pipeline strictly sequentially, so order is preserved within a stream while
the two streams progress independently.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from functools import partial
from typing import Any

from app.config import settings
from app.schemas.notification import NotificationRecord
from app.services.ports import NotificationBackend

logger = logging.getLogger(__name__)

OWN_STREAM: str = "own"
BROADCAST_STREAM: str = "broadcast"
STREAMS: tuple[str, ...] = (OWN_STREAM, BROADCAST_STREAM)

# 파이프라인 처리기 — Pipeline handler (recipient_id, record)
RecordHandler = Callable[[str, NotificationRecord], Awaitable[None]]

# 스트림 종료 표식 — End-of-stream marker
_CLOSED = object()


class FeedSubscription:
    """단일 수신자에 대한 취소 가능한 알림 스트림.

    Cancellable pair of notification streams for one recipient.
    After ``close`` nothing further is yielded, including records that were
    queued but not yet picked up by a worker.
    """

    def __init__(self, recipient_id: str) -> None:
        self.recipient_id: str = recipient_id
        self.handle: Any = None
        self._queues: dict[str, asyncio.Queue] = {name: asyncio.Queue() for name in STREAMS}
        self._workers: list[asyncio.Task] = []
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, stream: str, record: NotificationRecord) -> None:
        """백엔드 콜백 — 레코드를 해당 스트림에 넣습니다."""
        if self._closed:
            logger.debug("Dropping %s notification %s for closed subscription", stream, record.id)
            return
        self._queues[stream].put_nowait(record)

    async def stream(self, name: str) -> AsyncIterator[NotificationRecord]:
        """스트림의 레코드를 도착 순서대로 내보냅니다."""
        queue: asyncio.Queue = self._queues[name]
        while True:
            item = await queue.get()
            if item is _CLOSED or self._closed:
                return
            yield item

    def attach_worker(self, worker: asyncio.Task) -> None:
        self._workers.append(worker)

    def close(self) -> None:
        """대기 중인 레코드를 버리고 스트림을 종료합니다."""
        if self._closed:
            return
        self._closed = True
        for queue in self._queues.values():
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(_CLOSED)

    async def wait_closed(self) -> None:
        """워커가 현재 처리 중인 레코드까지 마치고 종료될 때까지 기다립니다."""
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)


class ChangeFeedClient:
    """변경 피드 클라이언트.

    Holds at most one active subscription. ``connect`` while connected and
    ``disconnect`` while disconnected are both no-ops.
    """

    def __init__(
        self,
        backend: NotificationBackend,
        handler: RecordHandler,
        timeout: float | None = None,
    ) -> None:
        self._backend: NotificationBackend = backend
        self._handler: RecordHandler = handler
        self._timeout: float = timeout if timeout is not None else settings.BACKEND_CALL_TIMEOUT_SECONDS
        self._subscription: FeedSubscription | None = None

    @property
    def subscription(self) -> FeedSubscription | None:
        return self._subscription

    @property
    def connected(self) -> bool:
        return self._subscription is not None

    async def connect(self, recipient_id: str) -> FeedSubscription:
        """수신자의 own/broadcast 스트림을 구독합니다.

        Subscribe to the recipient's own and broadcast streams and start one
        worker per stream.

        Args:
            recipient_id: 수신자 ID (Recipient identifier)

        Returns:
            FeedSubscription: 활성 구독 (The active subscription)

        Raises:
            Exception: 백엔드 구독 실패 시 그대로 전파 (Backend subscribe failure)
        """
        if self._subscription is not None:
            return self._subscription

        subscription = FeedSubscription(recipient_id)
        self._subscription = subscription
        try:
            subscription.handle = await asyncio.wait_for(
                self._backend.subscribe(
                    recipient_id,
                    partial(subscription.push, OWN_STREAM),
                    partial(subscription.push, BROADCAST_STREAM),
                ),
                timeout=self._timeout,
            )
        except BaseException:
            subscription.close()
            if self._subscription is subscription:
                self._subscription = None
            raise

        for name in STREAMS:
            subscription.attach_worker(
                asyncio.create_task(self._consume(subscription, name), name=f"feed-{name}-{recipient_id}")
            )
        logger.info("Started listening for notifications (recipient %s)", recipient_id)
        return subscription

    async def disconnect(self, subscription: FeedSubscription | None = None) -> None:
        """구독을 해제합니다. 반환 이후에는 레코드가 전달되지 않습니다.

        Release the subscription. Delivery stops immediately; a record whose
        pipeline run is already in flight is allowed to finish.
        """
        subscription = subscription or self._subscription
        if subscription is None:
            return
        if self._subscription is subscription:
            self._subscription = None

        subscription.close()
        try:
            await asyncio.wait_for(self._backend.unsubscribe(subscription.handle), timeout=self._timeout)
        except Exception:
            logger.exception("Error releasing notification subscription (recipient %s)", subscription.recipient_id)
        logger.info("Stopped listening for notifications (recipient %s)", subscription.recipient_id)

    async def _consume(self, subscription: FeedSubscription, name: str) -> None:
        async for record in subscription.stream(name):
            try:
                await self._handler(subscription.recipient_id, record)
            except Exception:
                logger.exception("Error handling %s notification %s", name, record.id)
