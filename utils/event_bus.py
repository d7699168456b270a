"""
Simple asynchronous event bus for publishing local state changes to the view layer.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from models.enums import InventoryEventType
from models.events import InventoryEvent

logger_event_bus = logging.getLogger(__name__)

Subscriber = Callable[[InventoryEvent], Coroutine[Any, Any, None]]


class EventBus:
    """Fan-out of InventoryEvents to async subscribers, keyed by event type."""

    def __init__(self):
        self.subscribers: dict[InventoryEventType, list[Subscriber]] = {}

    def subscribe(self, event_type: InventoryEventType, callback: Subscriber) -> None:
        """Subscribe to an event type."""
        if not callable(callback):
            raise TypeError("Callback must be a callable async function.")
        event_type = InventoryEventType(event_type)
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        if callback not in self.subscribers[event_type]:
            self.subscribers[event_type].append(callback)
            logger_event_bus.debug(f"Callback {_name(callback)} subscribed to {event_type.value}")
        else:
            logger_event_bus.warning(f"Callback {_name(callback)} already subscribed to {event_type.value}")

    def unsubscribe(self, event_type: InventoryEventType, callback: Subscriber) -> None:
        """Unsubscribe a specific callback from an event type."""
        event_type = InventoryEventType(event_type)
        if event_type in self.subscribers:
            try:
                self.subscribers[event_type].remove(callback)
                logger_event_bus.debug(f"Callback {_name(callback)} unsubscribed from {event_type.value}")
                if not self.subscribers[event_type]:
                    del self.subscribers[event_type]
            except ValueError:
                logger_event_bus.warning(f"Callback {_name(callback)} not found for event type {event_type.value}")

    async def publish(self, event: InventoryEvent) -> None:
        """Publish an event to subscribers. Subscriber failures are logged, never raised."""
        if not isinstance(event, InventoryEvent):
            logger_event_bus.error(f"Attempted to publish invalid event type: {type(event)}")
            return

        logger_event_bus.debug(f"Event published: {event.event_type.value} from {event.source.value}")
        callbacks = list(self.subscribers.get(event.event_type, []))
        if not callbacks:
            return
        results = await asyncio.gather(*(callback(event) for callback in callbacks), return_exceptions=True)
        for callback, result in zip(callbacks, results):
            if isinstance(result, Exception):
                logger_event_bus.error(
                    f"Error in subscriber callback '{_name(callback)}' for event {event.event_type.value}: {result}"
                )


def _name(callback: Any) -> str:
    return getattr(callback, "__name__", repr(callback))
