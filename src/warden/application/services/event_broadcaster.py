"""Event broadcaster - permission-filtered fan-out of change events.

Each subscription owns a bounded queue; ``publish`` never waits on a
subscriber. When a queue is full the oldest pending event is dropped.
Delivery is at most once and nothing is replayed after a reconnect unless
the caller asks for the bounded recent history.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from uuid import uuid4

from warden.application.ports import ChangeSource
from warden.application.services.authorization_gate import GrantLoader
from warden.domain.authorization import EffectiveGrants, required_scope
from warden.domain.entities import Actor, ChangeEvent
from warden.domain.error_codes import ErrorCode
from warden.domain.exceptions import DeliveryFailed

logger = logging.getLogger(__name__)

READ_ACTION = "read"
_CLOSED = object()


class Subscription:
    """One live subscriber: actor, current grants and a bounded event queue."""

    def __init__(
        self,
        actor: Actor,
        grants: EffectiveGrants,
        *,
        resource_filter: str | None = None,
        grant_loader: GrantLoader | None = None,
        queue_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
        on_close: Callable[["Subscription"], None] | None = None,
    ) -> None:
        self.id = str(uuid4())
        self.actor = actor
        self.grants = grants
        self.resource_filter = resource_filter
        self.grant_loader = grant_loader
        self.dropped = 0
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, queue_size))
        self._clock = clock
        self._close_callbacks = [on_close] if on_close is not None else []
        self._closed = False
        self._waiting = False
        self.last_active = clock()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def waiting(self) -> bool:
        """True while the consumer is blocked waiting for the next event."""
        return self._waiting

    def offer(self, event: ChangeEvent) -> None:
        """Queue an event without blocking; drops the oldest one when full.

        Raises DeliveryFailed once the subscription is closed.
        """
        if self._closed:
            raise DeliveryFailed(f"Subscription {self.id} is closed")
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "%s: subscription %s (actor %s) saturated, dropped oldest event",
                ErrorCode.BROADCAST_DELIVERY_FAILED,
                self.id,
                self.actor.id,
            )
        self._queue.put_nowait(event)

    def close(self) -> None:
        """End the subscription; a consumer blocked on ``events`` stops cleanly."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        for callback in self._close_callbacks:
            callback(self)

    def add_close_callback(self, callback: Callable[["Subscription"], None]) -> None:
        """Run ``callback`` once when the subscription closes, however it closes."""
        if self._closed:
            callback(self)
        else:
            self._close_callbacks.append(callback)

    async def events(self, heartbeat: float | None = None) -> AsyncIterator[ChangeEvent | None]:
        """Yield events as they arrive; yields None every ``heartbeat`` seconds when idle."""
        while not self._closed:
            self.last_active = self._clock()
            self._waiting = True
            try:
                if heartbeat:
                    item = await asyncio.wait_for(self._queue.get(), heartbeat)
                else:
                    item = await self._queue.get()
            except TimeoutError:
                item = None
            finally:
                self._waiting = False
                self.last_active = self._clock()
            if item is _CLOSED:
                return
            yield item

    def __aiter__(self) -> AsyncIterator[ChangeEvent | None]:
        return self.events()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


class EventBroadcaster:
    """Fans change events out to subscribers whose permissions admit them."""

    def __init__(
        self,
        *,
        queue_size: int = 100,
        replay_size: int = 0,
        idle_timeout: float = 60.0,
        refresh_interval: float = 30.0,
        restart_backoff: float = 1.0,
        max_restart_backoff: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._queue_size = queue_size
        self._restart_backoff = restart_backoff
        self._max_restart_backoff = max_restart_backoff
        self._idle_timeout = idle_timeout
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._history: deque[ChangeEvent] = deque(maxlen=max(0, replay_size))
        self._subscriptions: dict[str, Subscription] = {}
        self._tasks: list[asyncio.Task] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        actor: Actor,
        grants: EffectiveGrants,
        *,
        resource_filter: str | None = None,
        replay: bool = False,
        grant_loader: GrantLoader | None = None,
        on_close: Callable[[Subscription], None] | None = None,
    ) -> Subscription:
        """Register a subscriber. The permission filter applies regardless of narrowing.

        ``on_close`` runs when the subscription ends, including when it is reaped.
        """
        subscription = Subscription(
            actor,
            grants,
            resource_filter=resource_filter,
            grant_loader=grant_loader,
            queue_size=self._queue_size,
            clock=self._clock,
            on_close=self._discard,
        )
        if on_close is not None:
            subscription.add_close_callback(on_close)
        self._subscriptions[subscription.id] = subscription
        if replay:
            for event in self._history:
                if self.admits(subscription, event):
                    subscription.offer(event)
        logger.debug("Subscription %s opened for actor %s", subscription.id, actor.id)
        return subscription

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every admitting subscriber. Returns the delivery count."""
        if self._history.maxlen:
            self._history.append(event)
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            if not self.admits(subscription, event):
                continue
            try:
                subscription.offer(event)
            except DeliveryFailed as e:
                logger.warning("%s: %s", e.code, e)
                continue
            delivered += 1
        return delivered

    @staticmethod
    def admits(subscription: Subscription, event: ChangeEvent) -> bool:
        """True if the subscriber may read the event's record."""
        if subscription.resource_filter and subscription.resource_filter != event.resource:
            return False
        scope = required_scope(subscription.actor, event)
        return subscription.grants.permits(event.resource, READ_ACTION, scope)

    async def attach(self, source: ChangeSource) -> None:
        """Publish every event ``source`` yields until it is exhausted or cancelled.

        A failing source is logged and restarted with capped exponential backoff.
        """
        delay = self._restart_backoff
        while True:
            try:
                async for event in source.changes():
                    self.publish(event)
                    delay = self._restart_backoff
                return
            except Exception:
                logger.exception("Change source failed, restarting in %.1fs", delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._max_restart_backoff)

    def reap_idle(self) -> int:
        """Close subscriptions whose consumer stopped pulling events."""
        deadline = self._clock() - self._idle_timeout
        reaped = 0
        for subscription in list(self._subscriptions.values()):
            if not subscription.waiting and subscription.last_active < deadline:
                logger.info(
                    "Reaping idle subscription %s (actor %s)",
                    subscription.id,
                    subscription.actor.id,
                )
                subscription.close()
                reaped += 1
        return reaped

    async def refresh_grants(self) -> None:
        """Reload live grants; subscriptions whose credential is gone are closed."""
        subscriptions = [
            s for s in self._subscriptions.values() if s.grant_loader is not None
        ]
        results = await asyncio.gather(
            *(s.grant_loader() for s in subscriptions), return_exceptions=True
        )
        for subscription, result in zip(subscriptions, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Grant refresh failed for subscription %s: %s", subscription.id, result
                )
            elif result is None:
                logger.info("Credential for subscription %s no longer valid", subscription.id)
                subscription.close()
            else:
                subscription.grants = result

    def start(self, source: ChangeSource | None = None) -> None:
        """Start maintenance and, when given, consumption of ``source``."""
        if self._tasks:
            return
        self._tasks.append(asyncio.create_task(self._maintain(), name="broadcast-maintenance"))
        if source is not None:
            self._tasks.append(asyncio.create_task(self.attach(source), name="broadcast-source"))

    async def close(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        for subscription in list(self._subscriptions.values()):
            subscription.close()

    async def _maintain(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            self.reap_idle()
            await self.refresh_grants()

    def _discard(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.id, None)
