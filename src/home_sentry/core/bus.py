"""
Event Notifier for sensor domain events.

The notifier is a simple, synchronous dispatcher: events are delivered on
the posting thread, in registration order.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Callable, List, Optional, Tuple, Type

from home_sentry.core.models import Sensor, Trigger

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    """Get current UTC time (for default factory)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class SensorUpdated:
    """A sensor reported a new reading."""

    sensor: Sensor
    timestamp: datetime = field(default_factory=_utc_now, compare=False)


@dataclass(frozen=True)
class SensorOffline:
    """A sensor announced it is going offline."""

    sensor: Sensor
    timestamp: datetime = field(default_factory=_utc_now, compare=False)


@dataclass(frozen=True)
class SensorTriggered:
    """A sensor reading fired a trigger."""

    sensor: Sensor
    trigger: Trigger
    timestamp: datetime = field(default_factory=_utc_now, compare=False)


SensorEvent = SensorUpdated | SensorOffline | SensorTriggered

EVENT_TYPES: Tuple[Type, ...] = (SensorUpdated, SensorOffline, SensorTriggered)


class EventFilter:
    """
    Filter for listener registrations.

    Declares which event variants a listener is interested in.
    """

    def __init__(self, *event_types: Type) -> None:
        """
        Initialize an event filter.

        Args:
            event_types: Event classes to accept (none given = all events)
        """
        for event_type in event_types:
            if event_type not in EVENT_TYPES:
                raise ValueError(f"Unknown event type: {event_type!r}")
        self.event_types = tuple(event_types)

    def matches(self, event: SensorEvent) -> bool:
        """
        Check if an event matches this filter.

        Args:
            event: The event to check

        Returns:
            True if the event matches the filter
        """
        if not self.event_types:
            return True
        return isinstance(event, self.event_types)

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self.event_types) or "*"
        return f"EventFilter({names})"


EventHandler = Callable[[SensorEvent], None]


class EventNotifier:
    """
    Synchronous fan-out of sensor events to listeners.

    Handlers are wrapped in try/except: the notifier runs inside the message
    delivery path, and a faulty listener must not break bus processing.
    """

    def __init__(self) -> None:
        """Initialize the notifier."""
        self._handlers: List[Tuple[EventFilter, EventHandler]] = []
        self._lock = threading.Lock()

    def register(
        self,
        handler: EventHandler,
        event_filter: Optional[EventFilter] = None,
    ) -> None:
        """
        Register a listener.

        Args:
            handler: Callable that receives event objects
            event_filter: Optional filter for events (None = receive all events)
        """
        if event_filter is None:
            event_filter = EventFilter()

        with self._lock:
            self._handlers.append((event_filter, handler))
        logger.debug(f"Registered handler {_name_of(handler)} with filter {event_filter}")

    def unregister(self, handler: EventHandler) -> None:
        """
        Unregister a handler from all events.

        Args:
            handler: The handler to unregister
        """
        with self._lock:
            self._handlers = [(f, h) for f, h in self._handlers if h != handler]
        logger.debug(f"Unregistered handler {_name_of(handler)}")

    def post(self, event: SensorEvent) -> None:
        """
        Post an event to all matching listeners.

        Handlers are called synchronously and wrapped in try/except.

        Args:
            event: The event to post
        """
        with self._lock:
            handlers = list(self._handlers)

        sensor = event.sensor
        logger.debug(
            f"Posting {type(event).__name__} for {sensor.device_type}/{sensor.device_name}"
        )

        for event_filter, handler in handlers:
            if event_filter.matches(event):
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {_name_of(handler)} "
                        f"for event {type(event).__name__}: {e}",
                        exc_info=True,
                    )

    def clear(self) -> None:
        """Remove every registered handler."""
        with self._lock:
            self._handlers = []

    def __len__(self) -> int:
        return len(self._handlers)


def _name_of(handler: EventHandler) -> str:
    return getattr(handler, "__name__", type(handler).__name__)
