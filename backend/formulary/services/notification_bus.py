"""Notification Bus — publish/subscribe fan-out of completed-mutation events.

Invariants:
    - Subscribers are called in subscription order, one event at a time
    - A failing subscriber is logged and never affects other subscribers or the
      publisher
    - subscribe() returns an unsubscribe callable; unsubscribing twice is harmless
    - NullNotificationSink is the default sink: engines always have one

Design Decisions:
    - Explicit callback registry instead of a global event: lifecycle is owned by
      whoever subscribes (lifespan at startup, SSE clients per connection)
    - Sync and async handlers both accepted; awaitables returned by a handler are awaited
"""

import inspect
import logging
from typing import Awaitable, Callable

from formulary.core.events import NotificationEvent

logger = logging.getLogger(__name__)

Handler = Callable[[NotificationEvent], Awaitable[None] | None]


class NullNotificationSink:
    """Sink that drops every event."""

    async def publish(self, event: NotificationEvent) -> None:
        return None


class NotificationBus:
    """In-process event fan-out; implements the NotificationSink protocol."""

    def __init__(self):
        self._handlers: list[Handler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: NotificationEvent) -> None:
        # snapshot: handlers may unsubscribe while being notified
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Notification subscriber failed on {event.kind.value}: {e}",
                    exc_info=True,
                )

    def clear(self) -> None:
        self._handlers.clear()
