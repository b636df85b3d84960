"""
Action & Panel Tables
=====================

Pure lookups from the current ``RaceState`` to:

* the single primary action the driver may take (``ButtonConfig``), and
* which supporting panels are visible (``PanelVisibility``).

Both tables are total over ``RaceState``; a missing entry fails at import
time rather than at lookup time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .enums import RACE_TRANSITIONS, RaceState, TransitionAction
from .errors import InvalidStateTransition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ButtonConfig:
    label: str
    action: TransitionAction
    enabled: bool
    stop_name: Optional[str] = None

    @property
    def display_label(self) -> str:
        if self.stop_name:
            return f"{self.label} {self.stop_name}"
        return self.label


@dataclass(frozen=True)
class PanelVisibility:
    main_button: bool
    queue: bool
    reservation: bool
    cash: bool


# ── Tables ────────────────────────────────────────────────────────────


RACE_STATE_TO_BUTTON: dict[RaceState, ButtonConfig] = {
    RaceState.OFFLINE: ButtonConfig("Go online", TransitionAction.START_SHIFT, True),
    RaceState.WAITING_START: ButtonConfig("Start trip", TransitionAction.START_TRIP, True),
    RaceState.BOARDING: ButtonConfig("Depart", TransitionAction.DEPART_STOP, True),
    RaceState.IN_TRANSIT: ButtonConfig("Arrived", TransitionAction.ARRIVE_STOP, True),
    RaceState.ARRIVED_STOP: ButtonConfig("Start boarding", TransitionAction.START_BOARDING, True),
    RaceState.FINISHED: ButtonConfig("Finish trip", TransitionAction.FINISH_TRIP, True),
}

RACE_STATE_TO_PANELS: dict[RaceState, PanelVisibility] = {
    RaceState.OFFLINE: PanelVisibility(main_button=True, queue=False, reservation=False, cash=False),
    RaceState.WAITING_START: PanelVisibility(main_button=True, queue=False, reservation=False, cash=False),
    RaceState.BOARDING: PanelVisibility(main_button=True, queue=True, reservation=True, cash=True),
    RaceState.IN_TRANSIT: PanelVisibility(main_button=True, queue=False, reservation=False, cash=True),
    RaceState.ARRIVED_STOP: PanelVisibility(main_button=True, queue=True, reservation=True, cash=True),
    RaceState.FINISHED: PanelVisibility(main_button=True, queue=False, reservation=False, cash=False),
}


def _check_tables() -> None:
    for table_name, table in (
        ("RACE_STATE_TO_BUTTON", RACE_STATE_TO_BUTTON),
        ("RACE_STATE_TO_PANELS", RACE_STATE_TO_PANELS),
        ("RACE_TRANSITIONS", RACE_TRANSITIONS),
    ):
        missing = set(RaceState) - set(table)
        if missing:
            names = ", ".join(sorted(s.value for s in missing))
            raise RuntimeError(f"{table_name} has no entry for: {names}")

    for state, button in RACE_STATE_TO_BUTTON.items():
        if button.action is TransitionAction.NONE:
            raise RuntimeError(f"{state.value} maps to no action")
        if RACE_TRANSITIONS[state][0] is not button.action:
            raise RuntimeError(f"{state.value}: button and transition table disagree")


_check_tables()


# ── Lookups ───────────────────────────────────────────────────────────


def action_for(state: RaceState, stop_name: Optional[str] = None) -> ButtonConfig:
    """Return the primary driver action for *state*.

    ``stop_name`` only annotates the ``arrive_stop`` action; it is ignored
    for every other state.
    """
    button = RACE_STATE_TO_BUTTON[state]
    if stop_name and button.action is TransitionAction.ARRIVE_STOP:
        return replace(button, stop_name=stop_name)
    return button


def panels_for(state: RaceState) -> PanelVisibility:
    return RACE_STATE_TO_PANELS[state]


def next_state(state: RaceState, action: TransitionAction) -> RaceState:
    """Resolve the state reached by applying *action* in *state*, else raise."""
    offered, target = RACE_TRANSITIONS[state]
    if action is not offered:
        raise InvalidStateTransition(state, action, expected=offered)
    return target
