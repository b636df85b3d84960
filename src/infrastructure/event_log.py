"""
Event log sinks.

Every state change in the driver panel core is reported through
``EventLog.emit(name, details)``.  Sinks are best-effort: ``emit`` never
raises into the caller.

* ``LoggingEventLog``   -- writes to the stdlib ``logging`` tree.
* ``RecordingEventLog`` -- keeps the last N events in memory (admin
  endpoint, tests) and optionally forwards to another sink.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class EventLog(Protocol):
    def emit(self, event_name: str, details: Mapping[str, Any]) -> None: ...


@dataclass(frozen=True)
class EventRecord:
    name: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            **self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class LoggingEventLog:
    def __init__(self, name: str = "panel.events", level: int = logging.INFO):
        self._logger = logging.getLogger(name)
        self._level = level

    def emit(self, event_name: str, details: Mapping[str, Any]) -> None:
        try:
            record = EventRecord(event_name, dict(details))
            self._logger.log(self._level, "%s %s", event_name, record.as_dict())
        except Exception:
            logger.exception("Failed to log event %s", event_name)


class RecordingEventLog:
    def __init__(self, capacity: int = 500, forward: Optional[EventLog] = None):
        self._events: deque[EventRecord] = deque(maxlen=capacity)
        self._forward = forward

    def emit(self, event_name: str, details: Mapping[str, Any]) -> None:
        try:
            self._events.append(EventRecord(event_name, dict(details)))
            if self._forward is not None:
                self._forward.emit(event_name, details)
        except Exception:
            logger.exception("Failed to record event %s", event_name)

    @property
    def events(self) -> list[EventRecord]:
        return list(self._events)

    def names(self) -> list[str]:
        return [e.name for e in self._events]

    def last(self, event_name: Optional[str] = None) -> Optional[EventRecord]:
        for event in reversed(self._events):
            if event_name is None or event.name == event_name:
                return event
        return None

    def clear(self) -> None:
        self._events.clear()
