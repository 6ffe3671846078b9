"""Lifecycle events emitted while migrations run.

Each unit produces a start event (``migrating`` / ``reverting``) before its
action runs and a completion event (``migrated`` / ``reverted``) once the
execution record has been updated.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class MigrationEventType(str, Enum):
    """Types of migration events."""

    MIGRATING = "migrating"
    MIGRATED = "migrated"
    REVERTING = "reverting"
    REVERTED = "reverted"


@dataclass
class MigrationEvent:
    """A single migration lifecycle event.

    Attributes:
        event_type: Type of event
        name: Migration name
        path: Migration path, if resolved from a file
        duration_ms: Action duration, set on completion events
        timestamp: When the event occurred
    """

    event_type: MigrationEventType
    name: str
    path: Optional[str] = None
    duration_ms: Optional[int] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "name": self.name,
            "path": self.path,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MigrationEvent":
        """Create from dictionary."""
        return cls(
            event_type=MigrationEventType(data["event_type"]),
            name=data["name"],
            path=data.get("path"),
            duration_ms=data.get("duration_ms"),
            timestamp=data.get("timestamp", datetime.now().isoformat()),
        )


class EventEmitter:
    """Dispatches migration events to registered callbacks.

    Callback failures are logged and never interrupt a migration run.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._callbacks: list[Callable[[MigrationEvent], None]] = []
        self._events_emitted = 0

    def add_callback(self, callback: Callable[[MigrationEvent], None]) -> None:
        """Add a callback to be called on each event."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[MigrationEvent], None]) -> None:
        """Remove a previously added callback."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def emit(self, event: MigrationEvent) -> None:
        """Emit an event to every callback."""
        if not self.enabled:
            return

        self._events_emitted += 1
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Event callback failed for {event.event_type.value}: {e}")

    @property
    def events_emitted(self) -> int:
        return self._events_emitted
