"""Adapter from the legacy trip-status vocabulary to ``RaceState``."""

from __future__ import annotations

import logging
import re

from .enums import RaceState
from .errors import UnknownStatus

logger = logging.getLogger(__name__)


LEGACY_TRIP_STATUS: dict[str, RaceState] = {
    "PREP_IDLE": RaceState.OFFLINE,
    "PREP_TIMER": RaceState.WAITING_START,
    "BOARDING": RaceState.BOARDING,
    "ROUTE_READY": RaceState.ARRIVED_STOP,
    "IN_ROUTE": RaceState.IN_TRANSIT,
    "FINISHED": RaceState.FINISHED,
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _normalise(value: str) -> str:
    # "PrepIdle" and "PREP_IDLE" are both in circulation
    return _CAMEL_BOUNDARY.sub("_", value.strip()).upper()


def to_race_state(legacy_status: str) -> RaceState:
    try:
        return LEGACY_TRIP_STATUS[_normalise(legacy_status)]
    except KeyError:
        raise UnknownStatus(legacy_status) from None


def to_race_state_or(
    legacy_status: str, default: RaceState = RaceState.OFFLINE
) -> RaceState:
    """Like ``to_race_state`` but falls back to *default* for unknown input."""
    try:
        return to_race_state(legacy_status)
    except UnknownStatus:
        logger.warning(
            "Unknown legacy trip status %r, using %s", legacy_status, default.value
        )
        return default
