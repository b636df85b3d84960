"""Error taxonomy for the driver panel core.

All of these are local, recoverable conditions.  The controller reports
each one to the event log before raising; the API layer maps them to
HTTP 409 / 422 so nothing propagates past the presentation seam.
"""

from __future__ import annotations

from typing import Optional

from .enums import BlockReason, RaceState, TransitionAction


class BoardingError(Exception):
    """Base class for queue boarding failures."""


class ScanBlocked(BoardingError):
    """Raised when a scan cannot be started."""

    def __init__(self, reason: BlockReason):
        super().__init__(f"Scan blocked: {reason.value}")
        self.reason = reason


class InvalidPassengerState(BoardingError):
    """Raised when accept / reject / return targets a passenger in the wrong status."""

    def __init__(self, passenger_id: int, reason: str):
        super().__init__(f"Passenger {passenger_id}: {reason}")
        self.passenger_id = passenger_id
        self.reason = reason


class NoActiveSession(BoardingError):
    """Raised when a scan result arrives with no scan in flight."""

    def __init__(self) -> None:
        super().__init__("No active scan session")


class UnknownStatus(ValueError):
    """Raised for a legacy trip status outside the known vocabulary."""

    def __init__(self, value: str):
        super().__init__(f"Unknown trip status: {value!r}")
        self.value = value


class InvalidStateTransition(Exception):
    """Raised when a race action is not offered in the current state."""

    def __init__(
        self, state: RaceState, action: TransitionAction, expected: Optional[TransitionAction] = None
    ):
        super().__init__(f"Cannot apply {action.value} in {state.value}")
        self.state = state
        self.action = action
        self.expected = expected
