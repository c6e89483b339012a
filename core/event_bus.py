"""
Event Bus

Minimal in-process publish/subscribe channel.

The capture session publishes events (chunk ready, session stopped...) and
the upload queue subscribes to them, so producer and consumer never hold
references to each other. The queue keeps working after the session that
fed it is gone.

Dispatch is synchronous: publish() calls each subscriber in the publishing
thread, in subscription order. A failing subscriber is logged and skipped.
"""

import logging
import threading
from typing import Any, Callable, Dict, List

from core.constants import EventType

Subscriber = Callable[[Any], None]


class EventBus:
    """
    Thread-safe synchronous event dispatcher.

    Usage:
        bus = EventBus()
        bus.subscribe(EventType.CHUNK_READY, upload_queue.enqueue)
        bus.publish(EventType.CHUNK_READY, artifact)
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._subscribers: Dict[EventType, List[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: EventType, callback: Subscriber) -> None:
        """Register a handler for an event type"""
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if callback not in handlers:
                handlers.append(callback)
        self.logger.debug(f"Subscribed to {event_type.value}")

    def unsubscribe(self, event_type: EventType, callback: Subscriber) -> bool:
        """
        Remove a handler.

        Returns:
            True if the handler was registered
        """
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if callback in handlers:
                handlers.remove(callback)
                return True
        return False

    def publish(self, event_type: EventType, data: Any = None) -> int:
        """
        Deliver an event to every subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        with self._lock:
            handlers = list(self._subscribers.get(event_type, []))

        delivered = 0
        for handler in handlers:
            try:
                handler(data)
                delivered += 1
            except Exception as e:
                self.logger.error(
                    f"Error in {event_type.value} subscriber: {e}",
                    exc_info=True,
                )
        return delivered

    def subscriber_count(self, event_type: EventType) -> int:
        """Number of handlers registered for an event type"""
        with self._lock:
            return len(self._subscribers.get(event_type, []))
