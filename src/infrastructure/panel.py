"""
Driver panel wiring.

One ``DriverPanel`` per vehicle: the trip store, the boarding queue and
the event log, kept consistent with each other.  Scanning is disabled
whenever the current race state hides the queue panel.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

from src.config import Settings, settings
from src.domain.actions import panels_for
from src.domain.enums import RaceState
from src.domain.queue import QueueBoardingController

from .event_log import LoggingEventLog, RecordingEventLog
from .trip_store import InMemoryTripStore


class DriverPanel:
    def __init__(self, config: Settings = settings, state: RaceState = RaceState.OFFLINE):
        self.events = RecordingEventLog(
            capacity=config.event_log_capacity, forward=LoggingEventLog()
        )
        self.store = InMemoryTripStore(state, event_log=self.events)
        self.queue = QueueBoardingController(
            event_log=self.events,
            scan_timeout=timedelta(seconds=config.scan_timeout_seconds),
            ticket_price=config.ticket_price,
        )
        self.driver_name = config.driver_name
        # Serialises mutations coming from concurrent requests
        self.lock = asyncio.Lock()
        self.store.subscribe(self._sync_queue)
        self._sync_queue(self.store.state)

    def _sync_queue(self, state: RaceState) -> None:
        self.queue.disabled = not panels_for(state).queue
        if self.queue.disabled:
            self.queue.cancel_scan(reason="queue_hidden")


_panel: Optional[DriverPanel] = None


def get_driver_panel() -> DriverPanel:
    global _panel
    if _panel is None:
        _panel = DriverPanel()
    return _panel


def reset_driver_panel(panel: Optional[DriverPanel] = None) -> DriverPanel:
    """Swap the process-wide panel (fresh one by default). Used by tests."""
    global _panel
    _panel = panel or DriverPanel()
    return _panel
