"""In-process realtime event hub.

Producers call ``RealtimeHub.publish(channel, type, data)``; consumers hold
a ``Subscription`` returned by ``RealtimeHub.subscribe(*channels)`` and read
events with ``await sub.get()`` or ``async for event in sub``.

A subscription has three exits:

* ``unsubscribe()`` -- idempotent teardown; iteration stops cleanly.
* ``fail(exc)`` -- the error channel; the consumer's next read raises
  ``SubscriptionError`` chained to ``exc``.
* ``RealtimeHub.close()`` -- fails every live subscription (shutdown).

Each subscription owns a bounded queue.  When a slow consumer's queue is
full the new event is dropped and logged; the producer never blocks.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from app.core.constants import SUBSCRIPTION_QUEUE_SIZE
from app.models.enums import EventType

logger = logging.getLogger(__name__)


def user_channel(user_id: str) -> str:
    return f"user:{user_id}"


def candidate_channel(candidate_id: str) -> str:
    return f"candidate:{candidate_id}"


class RealtimeEvent(BaseModel):
    """A single event pushed to subscribers."""
    type: EventType
    channel: str
    data: dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SubscriptionError(Exception):
    """Raised to a consumer whose subscription was failed."""


class SubscriptionClosed(SubscriptionError):
    """Raised by ``get()`` after the subscription was torn down."""


_CLOSED = object()


class Subscription:
    """A consumer's handle on one or more hub channels."""

    def __init__(self, hub: RealtimeHub, maxsize: int) -> None:
        self._hub = hub
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self.channels: set[str] = set()
        self.closed = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> RealtimeEvent:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration from None

    def join(self, channel: str) -> None:
        if self.closed:
            raise SubscriptionClosed("subscription is closed")
        self._hub._attach(self, channel)

    def leave(self, channel: str) -> None:
        self._hub._detach(self, channel)

    def deliver(self, event: RealtimeEvent) -> bool:
        """Queue ``event`` without blocking.  Returns False if dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "realtime_event_dropped",
                extra={"channel": event.channel, "event_type": event.type.value},
            )
            return False
        return True

    def _force_put(self, item: Any) -> None:
        # Terminal markers must always land, even on a full queue
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def fail(self, exc: BaseException) -> None:
        """Deliver ``exc`` on the error channel and detach from the hub."""
        if self.closed:
            return
        self._hub._remove(self)
        self.closed = True
        self._force_put(exc)

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self._hub._remove(self)
        self.closed = True
        self._force_put(_CLOSED)

    async def get(self, timeout: float | None = None) -> RealtimeEvent:
        """Wait for the next event.

        Raises ``asyncio.TimeoutError`` on timeout, ``SubscriptionError`` if
        the subscription was failed and ``SubscriptionClosed`` once it was
        torn down and drained.
        """
        if self.closed and self._queue.empty():
            raise SubscriptionClosed("subscription is closed")
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            raise SubscriptionClosed("subscription is closed")
        if isinstance(item, BaseException):
            raise SubscriptionError(str(item)) from item
        return item


class RealtimeHub:
    """Channel registry fanning published events out to subscriptions."""

    def __init__(self, queue_size: int = SUBSCRIPTION_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._channels: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, *channels: str) -> Subscription:
        subscription = Subscription(self, self._queue_size)
        for channel in channels:
            self._attach(subscription, channel)
        return subscription

    def publish(
        self,
        channel: str,
        event_type: EventType,
        data: dict[str, Any] | None = None,
        exclude: Subscription | None = None,
    ) -> int:
        """Deliver an event to every subscriber of ``channel``.

        Returns the number of subscriptions that accepted the event.
        """
        event = RealtimeEvent(type=event_type, channel=channel, data=data or {})
        delivered = 0
        for subscription in list(self._channels.get(channel, ())):
            if subscription is exclude:
                continue
            if subscription.deliver(event):
                delivered += 1
        return delivered

    def subscriber_count(self, channel: str | None = None) -> int:
        if channel is not None:
            return len(self._channels.get(channel, ()))
        return len({sub for subs in self._channels.values() for sub in subs})

    def close(self) -> None:
        """Fail every live subscription.  Called on application shutdown."""
        subscriptions = {sub for subs in self._channels.values() for sub in subs}
        for subscription in subscriptions:
            subscription.fail(SubscriptionError("realtime hub closed"))
        self._channels.clear()
        logger.info("realtime_hub_closed", extra={"subscriptions": len(subscriptions)})

    # -- internal bookkeeping used by Subscription ----------------------

    def _attach(self, subscription: Subscription, channel: str) -> None:
        self._channels[channel].add(subscription)
        subscription.channels.add(channel)

    def _detach(self, subscription: Subscription, channel: str) -> None:
        subs = self._channels.get(channel)
        if subs is not None:
            subs.discard(subscription)
            if not subs:
                del self._channels[channel]
        subscription.channels.discard(channel)

    def _remove(self, subscription: Subscription) -> None:
        for channel in list(subscription.channels):
            self._detach(subscription, channel)
