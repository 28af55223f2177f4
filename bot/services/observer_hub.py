"""
Observer hub for live leaderboard fan-out.

Every registered observer gets its own bounded outbound queue and a task that
drains it. broadcast() only enqueues, so it never waits on an observer and
never holds anything while an observer does I/O. An observer that raises,
times out, or lets its queue fill up is dropped; the failure stays inside
the hub.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Protocol

from bot.config import Config
from bot.data_models.leaderboard import LeaderboardEvent, RankingSnapshot, RankingUpdate
from bot.utils.leaderboard_exceptions import DeliveryFailure

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[], Awaitable[RankingSnapshot]]


class Observer(Protocol):
    """Anything that can receive leaderboard events."""

    @property
    def observer_id(self) -> str: ...

    async def send(self, event: LeaderboardEvent) -> None: ...


class _Subscription:
    """Outbound queue and pump task for one observer."""

    def __init__(self, observer: Observer, queue_size: int):
        self.observer = observer
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.task: Optional[asyncio.Task] = None

    def offer(self, event: LeaderboardEvent):
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            raise DeliveryFailure(self.observer.observer_id, "outbound queue full")


class ObserverHub:
    """Concurrency-safe observer registry with per-observer delivery."""

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        *,
        queue_size: int = None,
        send_timeout: float = None
    ):
        self._snapshot_source = snapshot_source
        self._queue_size = Config.OBSERVER_QUEUE_SIZE if queue_size is None else queue_size
        self._send_timeout = Config.OBSERVER_SEND_TIMEOUT if send_timeout is None else send_timeout
        # asyncio.Queue treats maxsize 0 as unbounded
        if self._queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {self._queue_size}")
        if self._send_timeout <= 0:
            raise ValueError(f"send_timeout must be positive, got {self._send_timeout}")
        self._subscriptions: Dict[str, _Subscription] = {}

    @property
    def observer_count(self) -> int:
        return len(self._subscriptions)

    def is_registered(self, observer_id: str) -> bool:
        return observer_id in self._subscriptions

    async def register(self, observer: Observer):
        """
        Admit an observer and queue the current ranking for it.

        The subscription is live before the snapshot is read, so a broadcast
        racing the registration is queued rather than missed. Replacing an
        existing registration with the same id stops the old pump first.
        """
        observer_id = observer.observer_id
        if observer_id in self._subscriptions:
            self._drop(observer_id, "replaced by a new registration")

        subscription = _Subscription(observer, self._queue_size)
        self._subscriptions[observer_id] = subscription
        subscription.task = asyncio.create_task(
            self._pump(subscription), name=f"observer-pump:{observer_id}"
        )
        logger.info(f"Observer {observer_id} registered ({self.observer_count} active)")

        try:
            snapshot = await self._snapshot_source()
        except Exception:
            self._drop(observer_id, "initial snapshot unavailable")
            raise

        # The observer may have failed or been unregistered while we waited
        if self._subscriptions.get(observer_id) is subscription:
            self._deliver(subscription, RankingUpdate(snapshot=snapshot))

    def unregister(self, observer: Observer):
        """Remove an observer. Safe to call repeatedly."""
        self._drop(observer.observer_id, "unregistered")

    def broadcast(self, event: LeaderboardEvent):
        """Queue event for every registered observer without waiting on any of them."""
        for subscription in list(self._subscriptions.values()):
            self._deliver(subscription, event)

    async def close(self):
        """Stop every pump and forget all observers."""
        subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            self._drop(subscription.observer.observer_id, "hub closing")
        tasks = [s.task for s in subscriptions if s.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _deliver(self, subscription: _Subscription, event: LeaderboardEvent):
        try:
            subscription.offer(event)
        except DeliveryFailure as e:
            logger.warning(str(e))
            self._drop(subscription.observer.observer_id, "slow consumer", expected=subscription)

    def _drop(self, observer_id: str, reason: str, expected: Optional[_Subscription] = None):
        subscription = self._subscriptions.get(observer_id)
        if subscription is None or (expected is not None and subscription is not expected):
            return
        del self._subscriptions[observer_id]
        if subscription.task is not None and subscription.task is not asyncio.current_task():
            subscription.task.cancel()
        logger.info(f"Observer {observer_id} removed: {reason} ({self.observer_count} active)")

    async def _pump(self, subscription: _Subscription):
        observer = subscription.observer
        while True:
            event = await subscription.queue.get()
            try:
                await asyncio.wait_for(observer.send(event), timeout=self._send_timeout)
            except asyncio.CancelledError:
                raise
            except asyncio.TimeoutError:
                failure = DeliveryFailure(observer.observer_id, f"send exceeded {self._send_timeout}s")
            except Exception as e:
                failure = DeliveryFailure(observer.observer_id, f"{type(e).__name__}: {e}")
            else:
                continue

            logger.warning(str(failure))
            self._drop(observer.observer_id, "delivery failure", expected=subscription)
            return
