"""Domain enumerations and state-transition rules."""

import enum


class RaceState(str, enum.Enum):
    OFFLINE = "RACE_OFFLINE"
    WAITING_START = "RACE_WAITING_START"
    BOARDING = "RACE_BOARDING"
    IN_TRANSIT = "RACE_IN_TRANSIT"
    ARRIVED_STOP = "RACE_ARRIVED_STOP"
    FINISHED = "RACE_FINISHED"


class TransitionAction(str, enum.Enum):
    START_SHIFT = "start_shift"
    START_TRIP = "start_trip"
    DEPART_STOP = "depart_stop"
    ARRIVE_STOP = "arrive_stop"
    START_BOARDING = "start_boarding"
    FINISH_TRIP = "finish_trip"
    NONE = "none"


# State machine: maps current state -> (offered action, next state).
# Nothing leads into FINISHED; the trip store decides when a route is done.
RACE_TRANSITIONS: dict[RaceState, tuple[TransitionAction, RaceState]] = {
    RaceState.OFFLINE: (TransitionAction.START_SHIFT, RaceState.WAITING_START),
    RaceState.WAITING_START: (TransitionAction.START_TRIP, RaceState.BOARDING),
    RaceState.BOARDING: (TransitionAction.DEPART_STOP, RaceState.IN_TRANSIT),
    RaceState.IN_TRANSIT: (TransitionAction.ARRIVE_STOP, RaceState.ARRIVED_STOP),
    RaceState.ARRIVED_STOP: (TransitionAction.START_BOARDING, RaceState.BOARDING),
    RaceState.FINISHED: (TransitionAction.FINISH_TRIP, RaceState.OFFLINE),
}


class ScanStatus(str, enum.Enum):
    PENDING = "PENDING"
    SCANNED = "SCANNED"
    ERROR = "ERROR"


class BlockReason(str, enum.Enum):
    PREPARATION_NOT_STARTED = "preparation_not_started"
    NO_PASSENGERS_AVAILABLE = "no_passengers_available"
    SCAN_IN_PROGRESS = "scan_in_progress"
    DECISION_PENDING = "decision_pending"
