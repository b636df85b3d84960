"""
In-memory trip state store.

Holds the vehicle's current ``RaceState`` and applies driver actions
through the transition table.  It stands in for the external trip store:
nothing here is persisted.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from src.domain.actions import next_state
from src.domain.enums import RaceState, TransitionAction
from src.domain.errors import InvalidStateTransition
from src.domain.legacy import to_race_state

from .event_log import EventLog, LoggingEventLog

logger = logging.getLogger(__name__)

StateListener = Callable[[RaceState], None]

# States from which the route may be declared complete
_ROUTE_ACTIVE = {RaceState.BOARDING, RaceState.IN_TRANSIT, RaceState.ARRIVED_STOP}


class InMemoryTripStore:
    def __init__(
        self,
        state: RaceState = RaceState.OFFLINE,
        *,
        stop_name: Optional[str] = None,
        event_log: Optional[EventLog] = None,
        on_change: Optional[StateListener] = None,
    ):
        self._state = state
        self.stop_name = stop_name
        self._event_log: EventLog = event_log or LoggingEventLog()
        self._listeners: list[StateListener] = [on_change] if on_change else []

    @property
    def state(self) -> RaceState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def apply(self, action: TransitionAction) -> RaceState:
        """Apply a driver action; raises ``InvalidStateTransition`` if not offered."""
        try:
            target = next_state(self._state, action)
        except InvalidStateTransition as exc:
            self._event_log.emit(
                "ui:blocked",
                {
                    "action": action.value,
                    "state": self._state.value,
                    "reason": "action_not_offered",
                    "expected": exc.expected.value if exc.expected else None,
                },
            )
            raise
        self._set(target, action.value)
        return target

    def mark_route_complete(self) -> RaceState:
        if self._state not in _ROUTE_ACTIVE:
            self._event_log.emit(
                "ui:blocked",
                {
                    "action": "route_complete",
                    "state": self._state.value,
                    "reason": "route_not_active",
                },
            )
            raise InvalidStateTransition(self._state, TransitionAction.NONE)
        self._set(RaceState.FINISHED, "route_complete")
        return self._state

    def load_legacy_status(self, legacy_status: str) -> RaceState:
        """Overwrite the state from a producer still on the old vocabulary."""
        self._set(to_race_state(legacy_status), f"legacy:{legacy_status}")
        return self._state

    def _set(self, target: RaceState, cause: str) -> None:
        previous, self._state = self._state, target
        self._event_log.emit(
            "race:transition",
            {"from": previous.value, "to": target.value, "cause": cause},
        )
        logger.info("Race state %s -> %s (%s)", previous.value, target.value, cause)
        for listener in self._listeners:
            listener(target)
