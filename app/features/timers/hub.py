"""
Broadcast Hub

Fans timer lifecycle events out to every connected observer across the
WebSocket channel and the SSE stream. Each observer gets its own bounded
queue so a slow connection never blocks the registry or other observers.
"""

import asyncio
import itertools
import logging
from typing import Dict, List, Optional

from app.features.timers.domain import TimerEvent

logger = logging.getLogger(__name__)

TRANSPORT_WEBSOCKET = "websocket"
TRANSPORT_SSE = "sse"

_subscription_ids = itertools.count(1)


class Subscription:
    """A single observer's connection to the hub on one transport"""

    def __init__(self, transport: str, queue_size: int):
        self.id = next(_subscription_ids)
        self.transport = transport
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)

    def offer(self, event: TimerEvent) -> bool:
        """Enqueue without waiting. Returns False when the backlog is full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            return False

    async def next_event(self, timeout: Optional[float] = None) -> Optional[TimerEvent]:
        """
        Wait for the next event for this observer.

        Returns None once the subscription is closed. Raises
        asyncio.TimeoutError when `timeout` elapses with nothing queued.
        """
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Drop the backlog and wake the reader with the end-of-stream marker
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)


class BroadcastHub:
    """Single fan-out point for timer events"""

    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self._subscriptions: Dict[str, Dict[int, Subscription]] = {
            TRANSPORT_WEBSOCKET: {},
            TRANSPORT_SSE: {},
        }

    def subscribe(self, transport: str, bootstrap: Optional[TimerEvent] = None) -> Subscription:
        """
        Register a new observer.

        The bootstrap snapshot is queued before the subscription becomes
        visible to publish(), so it always arrives before any live event.
        """
        subscription = Subscription(transport, self.queue_size)
        if bootstrap is not None:
            subscription.offer(bootstrap)

        self._subscriptions.setdefault(transport, {})[subscription.id] = subscription
        logger.info(
            f"Observer {subscription.id} connected via {transport} "
            f"({self.total_connections} total)"
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        removed = self._subscriptions.get(subscription.transport, {}).pop(subscription.id, None)
        subscription.close()
        if removed is not None:
            logger.info(
                f"Observer {subscription.id} disconnected from {subscription.transport} "
                f"({self.total_connections} total)"
            )

    def publish(self, event: TimerEvent) -> int:
        """
        Deliver an event to every observer on every transport.

        Never waits. An observer whose backlog is full is pruned.
        Returns the number of observers the event was queued for.
        """
        delivered = 0
        for subscription in self._all_subscriptions():
            if subscription.offer(event):
                delivered += 1
            else:
                logger.warning(
                    f"Pruning observer {subscription.id} ({subscription.transport}): backlog full"
                )
                self.unsubscribe(subscription)
        return delivered

    def connection_counts(self) -> Dict[str, int]:
        return {transport: len(subs) for transport, subs in self._subscriptions.items()}

    @property
    def total_connections(self) -> int:
        return sum(len(subs) for subs in self._subscriptions.values())

    def close(self) -> None:
        """End every open stream"""
        for subscription in self._all_subscriptions():
            self.unsubscribe(subscription)

    def _all_subscriptions(self) -> List[Subscription]:
        return [s for subs in self._subscriptions.values() for s in subs.values()]
