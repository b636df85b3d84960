"""
Single-slot scan lock.

Guards the one QR scanning device on a vehicle: at most one scan attempt
is in flight.  ``locked`` is derived from ``active_passenger_id`` so the
two can never disagree.

Unlike a distributed lock there is no owner token; the queue controller
is the only holder.  ``started_at`` lets the controller expire a scan the
UI abandoned without reporting a result.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional


class ScanSession:
    def __init__(self) -> None:
        self.active_passenger_id: Optional[int] = None
        self.started_at: Optional[datetime] = None

    @property
    def locked(self) -> bool:
        return self.active_passenger_id is not None

    def acquire(self, passenger_id: int, now: datetime) -> bool:
        """Try to lock for *passenger_id*. Returns True on success."""
        if self.locked:
            return False
        self.active_passenger_id = passenger_id
        self.started_at = now
        return True

    def release(self) -> Optional[int]:
        """Unlock and return the passenger id that was targeted (if any)."""
        passenger_id = self.active_passenger_id
        self.active_passenger_id = None
        self.started_at = None
        return passenger_id

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        if self.started_at is None:
            return False
        return now - self.started_at >= timeout

    def __repr__(self) -> str:
        return f"ScanSession(active_passenger_id={self.active_passenger_id!r})"
