"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Passenger``: a single ``ScanStatus`` field
  (PENDING -> SCANNED | ERROR -> PENDING) replaces two independent flags,
  so "scanned and errored at once" cannot be represented.
- ``qr_data`` is attached only by ``mark_scanned`` and cleared by every
  other transition, keeping it present iff the passenger is SCANNED.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import ScanStatus


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class QRData:
    sum: float
    recipient: str
    created_at: datetime


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Passenger:
    id: int
    name: str = ""
    queue_position: int = 0
    count: int = 1  # party size
    ticket_count: int = 1
    order_number: int = 0
    scan_status: ScanStatus = ScanStatus.PENDING
    qr_data: Optional[QRData] = None
    is_first: bool = False  # maintained by the queue controller

    def __post_init__(self) -> None:
        if (self.scan_status is ScanStatus.SCANNED) != (self.qr_data is not None):
            raise ValueError(
                f"Passenger {self.id}: qr_data must be set iff scan_status is SCANNED"
            )

    @property
    def is_pending(self) -> bool:
        return self.scan_status is ScanStatus.PENDING

    @property
    def awaiting_decision(self) -> bool:
        """Scanned with a payment payload, waiting for accept / reject."""
        return self.scan_status is ScanStatus.SCANNED and self.qr_data is not None

    def mark_scanned(self, qr_data: QRData) -> None:
        self.scan_status = ScanStatus.SCANNED
        self.qr_data = qr_data

    def mark_error(self) -> None:
        self.scan_status = ScanStatus.ERROR
        self.qr_data = None

    def reset(self) -> None:
        self.scan_status = ScanStatus.PENDING
        self.qr_data = None
