"""Publish/subscribe event bus for agents and environments."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, TYPE_CHECKING

from config.constants import (
    AGENT_ADDED,
    AGENT_REMOVED,
    ENVIRONMENT_PAUSED,
    ENVIRONMENT_RESUMED,
    EVENT_HISTORY_LIMIT,
    TICK_END,
    TICK_START,
)

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Lifecycle events emitted by the environment. Interchangeable with plain strings."""

    TICK_START = TICK_START
    TICK_END = TICK_END
    AGENT_ADDED = AGENT_ADDED
    AGENT_REMOVED = AGENT_REMOVED
    ENVIRONMENT_PAUSED = ENVIRONMENT_PAUSED
    ENVIRONMENT_RESUMED = ENVIRONMENT_RESUMED

    def __str__(self) -> str:
        return self.value


@dataclass
class Event:
    """Event envelope, built fresh for every emit."""

    type: str
    source: Any = None  # Agent or Environment that emitted the event
    data: Any = None
    time: int = 0  # Environment time at emission
    propagation_stopped: bool = field(default=False)

    def stop_propagation(self) -> None:
        """Prevent handlers later in the subscription order from seeing this event."""
        self.propagation_stopped = True


# Type alias for event handlers
EventHandler = Callable[[Event], None]
Unsubscribe = Callable[[], None]


def _event_key(event_type: str) -> str:
    return event_type.value if isinstance(event_type, EventType) else event_type


class EventBus:
    """
    Publish/subscribe dispatcher keyed by string event type.

    Delivery is synchronous. Each emit works on a snapshot of the
    subscribers taken when it starts, so handlers added or removed during
    dispatch only affect later emits.

    The last ``history_limit`` events are kept for inspection. A limit of
    0 or less keeps no history.
    """

    def __init__(self, history_limit: int = EVENT_HISTORY_LIMIT) -> None:
        # dict keys keep subscription order and give set semantics
        self._handlers: Dict[str, Dict[EventHandler, None]] = defaultdict(dict)
        self._lock = Lock()
        self._environment: "Environment | None" = None
        self._event_history: List[Event] = []
        self._history_limit = history_limit

    def set_environment(self, environment: "Environment | None") -> None:
        """Bind the environment whose time stamps emitted events."""
        self._environment = environment

    @property
    def environment(self) -> "Environment | None":
        return self._environment

    def on(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """
        Subscribe a handler to an event type.

        Returns:
            A callable that removes exactly this subscription
        """
        key = _event_key(event_type)
        with self._lock:
            self._handlers[key][handler] = None

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(key)
                if handlers is not None:
                    handlers.pop(handler, None)

        return unsubscribe

    def once(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """Subscribe a handler that removes itself after its first delivery."""

        def wrapped(event: Event) -> None:
            unsubscribe()
            handler(event)

        unsubscribe = self.on(event_type, wrapped)
        return unsubscribe

    def off(self, event_type: str) -> None:
        """Remove all handlers for an event type."""
        with self._lock:
            self._handlers.pop(_event_key(event_type), None)

    def clear(self) -> None:
        """Remove all handlers for all event types."""
        with self._lock:
            self._handlers.clear()

    def emit(self, event_type: str, data: Any = None, source: Any = None) -> Event:
        """
        Emit an event to all current subscribers.

        Handler errors are logged and do not reach the caller or stop
        delivery to the remaining handlers.

        Args:
            event_type: Event type
            data: Event payload
            source: Agent or environment emitting the event

        Returns:
            The delivered event envelope
        """
        key = _event_key(event_type)
        event = Event(
            type=key,
            source=source,
            data=data,
            time=self._environment.time if self._environment is not None else 0,
        )

        with self._lock:
            if self._history_limit > 0:
                self._event_history.append(event)
                del self._event_history[:-self._history_limit]

            handlers = list(self._handlers.get(key, ()))

        # Call handlers outside lock so they may subscribe or emit
        for handler in handlers:
            if event.propagation_stopped:
                break
            try:
                handler(event)
            except Exception:
                logger.exception(f'Error in event handler for "{key}"')

        return event

    def has_handlers(self, event_type: str) -> bool:
        """Whether any handler is subscribed to an event type."""
        return self.handler_count(event_type) > 0

    def handler_count(self, event_type: str) -> int:
        """Number of handlers subscribed to an event type."""
        with self._lock:
            return len(self._handlers.get(_event_key(event_type), ()))

    def get_history(
        self,
        event_type: str | None = None,
        limit: int = 100
    ) -> List[Event]:
        """Get recent event history, optionally filtered by type."""
        with self._lock:
            if event_type:
                key = _event_key(event_type)
                events = [e for e in self._event_history if e.type == key]
            else:
                events = list(self._event_history)
        return events[-limit:]

    def clear_history(self) -> None:
        """Forget recorded events."""
        with self._lock:
            self._event_history.clear()
