"""Outbound notifications to the UI layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

MODEL_DOWNLOAD_PROGRESS = "model-download-progress"
MODEL_DOWNLOAD_COMPLETE = "model-download-complete"
MODEL_EXTRACTION_STARTED = "model-extraction-started"
MODEL_EXTRACTION_COMPLETED = "model-extraction-completed"
MODEL_EXTRACTION_FAILED = "model-extraction-failed"
MODEL_STATE_CHANGED = "model-state-changed"


@runtime_checkable
class EventSink(Protocol):
    """Receiver for fire-and-forget notifications.

    Implementations may raise; callers go through `emit()` which drops
    delivery failures.
    """

    def emit(self, event: str, payload: Any) -> None:
        """Deliver one event.

        Args:
            event: Event name, e.g. "model-download-progress".
            payload: JSON-serializable payload (dict or model id string).
        """
        ...


class NullEventSink:
    """Discards every event."""

    def emit(self, event: str, payload: Any) -> None:
        pass


class LoggingEventSink:
    """Writes events to the log at debug level."""

    def emit(self, event: str, payload: Any) -> None:
        logger.debug(f"event {event}: {payload}")


@dataclass
class RecordingEventSink:
    """Keeps every event in memory, in emission order."""

    events: list[tuple[str, Any]] = field(default_factory=list)

    def emit(self, event: str, payload: Any) -> None:
        self.events.append((event, payload))

    def names(self) -> list[str]:
        """Return the emitted event names."""
        return [name for name, _ in self.events]

    def payloads(self, event: str) -> list[Any]:
        """Return payloads of every event with the given name."""
        return [payload for name, payload in self.events if name == event]


def emit(sink: EventSink | None, event: str, payload: Any) -> None:
    """Send an event, swallowing any delivery failure."""
    if sink is None:
        return
    try:
        sink.emit(event, payload)
    except Exception as e:
        logger.debug(f"Dropping {event} event, sink failed: {e}")
