"""In-process fan-out of category change events to live admin clients."""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, List, Optional
from category_admin.core.exceptions import SubscriberError
from category_admin.schemas.category import Category
from category_admin.schemas.events import ChangeEvent, CategoriesSnapshotEvent
import logging

logger = logging.getLogger(__name__)

Subscriber = Callable[[ChangeEvent], None]


class NotificationBus:
    """
    Registry of subscriber callbacks, one per connected client.

    Dispatch is synchronous and single-threaded, so each subscriber sees
    events in publish order. A failing subscriber is logged and skipped.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback and return a handle that unsubscribes it."""
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        # Identity match: equal-but-distinct callables stay registered
        for index, registered in enumerate(self._subscribers):
            if registered is callback:
                del self._subscribers[index]
                return

    def publish(self, event: ChangeEvent) -> None:
        # Snapshot so callbacks may unsubscribe while being notified
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning(str(SubscriberError(callback, event.type, e)))


# Global bus shared by every request and stream
notification_bus = NotificationBus()


def format_sse(event) -> str:
    """Serialize an event as a single server-sent events frame."""
    return f"data: {event.model_dump_json()}\n\n"


async def category_event_stream(
    bus: NotificationBus,
    load_snapshot: Callable[[], Awaitable[List[Category]]],
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive_seconds: float = 15.0,
) -> AsyncIterator[str]:
    """
    Yield SSE frames: the init snapshot, then every published event.

    The subscription is taken before the snapshot is loaded, so a change made
    while loading is delivered after it rather than lost. It is released in
    the finally block, so it goes away whether the client disconnects, the response errors or the task is
    cancelled on shutdown.
    """
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = bus.subscribe(queue.put_nowait)
    logger.info(f"Change stream opened ({bus.subscriber_count} subscribers)")
    try:
        snapshot = CategoriesSnapshotEvent(categories=await load_snapshot())
        yield format_sse(snapshot)
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(event)
    finally:
        unsubscribe()
        logger.info(f"Change stream closed ({bus.subscriber_count} subscribers)")
