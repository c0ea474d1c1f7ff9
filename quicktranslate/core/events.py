"""
Event system for translator state observability.

The UI collaborator subscribes here to receive state transitions; the
orchestrator never calls into the UI directly.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Translator event types."""

    # Displayed state changed (status, texts, pair or error)
    STATE_CHANGED = "state_changed"
    LANGUAGES_CHANGED = "languages_changed"

    # Request lifecycle details
    REQUEST_SUPERSEDED = "request_superseded"
    REQUEST_RETRY = "request_retry"

    SPEECH_FAILED = "speech_failed"


@dataclass
class Event:
    """Translator event.

    Attributes:
        type: Event type
        data: Event-specific data dictionary
        timestamp: Unix timestamp when event occurred
        source: Optional source identifier (e.g., "orchestrator")
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"


class EventBus:
    """Central event bus for one translator session."""

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}
        self._history: List[Event] = []
        self._record_history = False

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            callback: Function to call when event occurs (receives Event object)
        """
        self._listeners.setdefault(event_type, []).append(callback)

    def subscribe_multiple(
        self,
        event_types: List[EventType],
        callback: Callable[[Event], None]
    ) -> None:
        for event_type in event_types:
            self.subscribe(event_type, callback)

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        if event_type in self._listeners:
            try:
                self._listeners[event_type].remove(callback)
            except ValueError:
                pass  # Callback not found

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        A failing listener is logged and skipped; it never breaks the
        request pipeline.
        """
        if self._record_history:
            self._history.append(event)

        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed for {event.type.value}")

    def enable_history(self) -> None:
        self._record_history = True

    def disable_history(self) -> None:
        self._record_history = False

    def get_history(self) -> List[Event]:
        """Get recorded event history in chronological order."""
        return self._history.copy()

    def clear_history(self) -> None:
        self._history.clear()

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self._history if e.type == event_type]
