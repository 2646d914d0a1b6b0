"""
Event bus - in-memory publish/subscribe
Decouples the reservation lifecycle from logging and other reactions
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """Event envelope"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # publishing service
    event_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d%H%M%S%f"))


class EventBus:
    """
    In-memory event bus (thread-safe singleton)

    Usage:
    1. event_bus.subscribe("reservation.created", handler)
    2. event_bus.publish(Event(...))
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._subscribers: Dict[str, List[Callable]] = {}
        self._event_history: deque = deque(maxlen=100)
        self._subscriber_lock = threading.Lock()
        self._initialized = True
        logger.info("EventBus initialized")

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """
        Subscribe a handler

        Args:
            event_type: event type, e.g. "reservation.created"
            handler: callable receiving the Event
        """
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"Handler {handler.__name__} subscribed to {event_type}")

    def publish(self, event: Event) -> None:
        """
        Publish an event, running every handler synchronously

        A failing handler is logged and does not stop the others

        Args:
            event: event to publish
        """
        self._event_history.append(event)

        with self._subscriber_lock:
            handlers = self._subscribers.get(event.event_type, []).copy()

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} error for {event.event_type}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """
        Recent events, newest first

        Args:
            event_type: optional filter
            limit: maximum number of events
        """
        history = list(self._event_history)
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return list(reversed(history))[:limit]

    def clear_subscribers(self) -> None:
        """Remove every subscription (tests)"""
        with self._subscriber_lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        self._event_history.clear()


# Global event bus
event_bus = EventBus()
