"""Thread-safe EventBus for session notifications.

The EventBus provides a publish-subscribe pattern so that a front end
(CLI, web handler, GUI) can follow a practice session without the session
knowing about it.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Type, TypeVar

from log_config.logger import get_logger

logger = get_logger(__name__)

EventType = TypeVar('EventType')
EventHandler = Callable[[EventType], None]


class EventBus:
    """Thread-safe event bus.

    Features:
    - Type-safe publish/subscribe
    - Error isolation (handler errors don't crash the publisher)
    - Synchronous event delivery (handlers run on publisher's thread)

    Capture workers publish from their own threads, so handlers should be
    fast. A handler may call back into the session, e.g. change the sample
    or replay from a PlaybackFinishedEvent.

    Example:
        ```python
        bus = EventBus()
        bus.subscribe(RecognizingEvent, lambda event: print(event.text))
        session = PracticeSession(config, library, assessor, event_bus=bus)
        ```
    """

    def __init__(self):
        self._subscribers: Dict[Type, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._event_count: Dict[Type, int] = {}
        self._start_time = time.time()

    def subscribe(self, event_type: Type[EventType], handler: EventHandler) -> None:
        """Register handler for event type.

        Args:
            event_type: The event class to subscribe to
            handler: Callback function that takes event as parameter
        """
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)
            self._event_count.setdefault(event_type, 0)
            logger.debug(f"Subscribed handler to {event_type.__name__} "
                         f"({len(self._subscribers[event_type])} total subscribers)")

    def unsubscribe(self, event_type: Type[EventType], handler: EventHandler) -> bool:
        """Unregister handler for event type.

        Returns:
            True if handler was found and removed, False otherwise
        """
        with self._lock:
            if event_type not in self._subscribers:
                return False

            try:
                self._subscribers[event_type].remove(handler)
                return True
            except ValueError:
                return False

    def publish(self, event: EventType) -> None:
        """Publish event to all subscribers.

        Handlers are called synchronously on the publisher's thread.
        If a handler raises an exception, it is logged and other handlers
        still execute.
        """
        event_type = type(event)

        # Copy handler list inside lock, call handlers outside it
        with self._lock:
            handlers = self._subscribers.get(event_type, []).copy()
            self._event_count[event_type] = self._event_count.get(event_type, 0) + 1

        if not handlers:
            return

        failed_handlers = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                failed_handlers += 1
                logger.opt(exception=True).error(
                    f"Event handler error for {event_type.__name__}: "
                    f"{e.__class__.__name__}: {e}"
                )

        if failed_handlers > 0:
            logger.warning(f"{failed_handlers}/{len(handlers)} handlers failed for {event_type.__name__}")

    def get_subscriber_count(self, event_type: Type[EventType]) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics.

        Returns:
            Dict with statistics:
            - event_types: Number of event types registered
            - total_subscribers: Total number of subscriptions
            - event_counts: Dict of event_type -> publish count
            - uptime_seconds: Time since bus creation
        """
        with self._lock:
            stats = {
                "event_types": len(self._subscribers),
                "total_subscribers": sum(len(handlers) for handlers in self._subscribers.values()),
                "event_counts": {
                    event_type.__name__: count
                    for event_type, count in self._event_count.items()
                },
                "uptime_seconds": time.time() - self._start_time
            }
        return stats

    def clear_all_subscribers(self) -> None:
        with self._lock:
            self._subscribers.clear()
            self._event_count.clear()

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (f"EventBus(event_types={stats['event_types']}, "
                f"subscribers={stats['total_subscribers']}, "
                f"uptime={stats['uptime_seconds']:.1f}s)")
