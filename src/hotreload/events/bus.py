"""Event bus for observing reload lifecycle events."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from hotreload.events.types import Event, EventType

logger = logging.getLogger(__name__)


class EventBus:
    """Fans out manager events to queue subscribers and callbacks.

    Subscribers get their own queue and read at their own pace. Callbacks may
    be plain functions or coroutines; their failures are logged and never
    reach the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, asyncio.Queue[Event]] = {}
        self._callbacks: list[Callable[[Event], Any]] = []

    def subscribe(self, subscriber_id: str) -> asyncio.Queue[Event]:
        """Register a subscriber and return the queue its events land in."""
        queue: asyncio.Queue[Event] = asyncio.Queue()
        self._subscribers[subscriber_id] = queue
        logger.debug(f"Subscriber {subscriber_id} registered")
        return queue

    def unsubscribe(self, subscriber_id: str) -> None:
        """Drop a subscriber; unknown ids are ignored."""
        if self._subscribers.pop(subscriber_id, None) is not None:
            logger.debug(f"Subscriber {subscriber_id} removed")

    def add_callback(self, callback: Callable[[Event], Any]) -> None:
        """Add a callback to be called for every event."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[Event], Any]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def publish(self, event: Event) -> None:
        """Deliver an event to every subscriber and callback."""
        logger.debug(f"Publishing event: {event.type.value}")

        for queue in list(self._subscribers.values()):
            queue.put_nowait(event)

        for callback in list(self._callbacks):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Event callback error on {event.type.value}: {e}")

    async def emit(
        self,
        event_type: EventType,
        data: dict[str, Any] | None = None,
        trigger_id: str | None = None,
    ) -> Event:
        """Create and publish an event.

        Args:
            event_type: The type of event.
            data: Event payload data.
            trigger_id: Trigger id of the reload cycle the event belongs to.

        Returns:
            The published event.
        """
        event = Event(type=event_type, data=data or {}, trigger_id=trigger_id)
        await self.publish(event)
        return event

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)
