"""
Queue Boarding Controller
=========================

Owns the ordered list of passengers waiting to pay and board at the
current stop, plus the vehicle's single ``ScanSession``.

Scan protocol
-------------
1. ``start_scan`` picks the lowest ``queue_position`` passenger that is
   still PENDING and locks the session for them.
2. The scanning device reports back exactly once through
   ``resolve_scan`` (or ``on_confirm`` / ``on_invalid``).  Success attaches
   the QR payload; failure marks the passenger ERROR.  The lock is
   released in every branch.
3. ``cancel_scan`` (dialog dismissed) and ``expire_scan`` (abandoned
   dialog) release the lock without touching the passenger.

Decisions
---------
A SCANNED passenger is either accepted (boards) or rejected (payment
declined); both remove them from the queue.  ``return_to_queue`` is the
undo path for SCANNED and ERROR passengers.

While any passenger awaits a decision the scan affordance is withheld
(``scan_offered``); ``request_scan`` enforces that on top of
``start_scan``.

Every mutation ends with ``on_update(passengers)`` carrying the full list.
Every refusal is emitted as ``ui:blocked`` before the error is raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional, Union

from src.infrastructure.event_log import EventLog, LoggingEventLog

from .entities import Passenger, QRData
from .enums import BlockReason, ScanStatus
from .errors import InvalidPassengerState, NoActiveSession, ScanBlocked
from .scan_session import ScanSession

QUEUE_CONTEXT = "queue"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Scan outcomes ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScanSuccess:
    sum: float
    recipient: str


@dataclass(frozen=True)
class ScanFailure:
    error: str = "invalid_qr"


ScanOutcome = Union[ScanSuccess, ScanFailure]

PassengerCallback = Callable[[int], None]
UpdateCallback = Callable[[list[Passenger]], None]


def _noop(*_args: Any) -> None:
    return None


# ── Controller ────────────────────────────────────────────────────────


class QueueBoardingController:
    def __init__(
        self,
        passengers: Iterable[Passenger] = (),
        *,
        event_log: Optional[EventLog] = None,
        on_update: Optional[UpdateCallback] = None,
        on_accept: Optional[PassengerCallback] = None,
        on_reject: Optional[PassengerCallback] = None,
        on_return: Optional[PassengerCallback] = None,
        disabled: bool = False,
        scan_timeout: timedelta = timedelta(seconds=60),
        ticket_price: float = 320.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._passengers: list[Passenger] = sorted(
            passengers, key=lambda p: p.queue_position
        )
        self.session = ScanSession()
        self.disabled = disabled
        self.scan_timeout = scan_timeout
        self.ticket_price = ticket_price
        self._event_log: EventLog = event_log or LoggingEventLog()
        self._on_update = on_update or _noop
        self._on_accept = on_accept or _noop
        self._on_reject = on_reject or _noop
        self._on_return = on_return or _noop
        self._clock = clock
        self._refresh_first()

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def passengers(self) -> list[Passenger]:
        return list(self._passengers)

    def get(self, passenger_id: int) -> Optional[Passenger]:
        for passenger in self._passengers:
            if passenger.id == passenger_id:
                return passenger
        return None

    def first_pending(self) -> Optional[Passenger]:
        pending = [p for p in self._passengers if p.is_pending]
        return min(pending, key=lambda p: p.queue_position, default=None)

    @property
    def pending_decisions(self) -> list[Passenger]:
        return [p for p in self._passengers if p.awaiting_decision]

    @property
    def scan_offered(self) -> bool:
        """Whether the driver should be shown the scan button at all."""
        return not self.pending_decisions

    @property
    def can_scan(self) -> bool:
        return (
            not self.disabled
            and not self.session.locked
            and self.scan_offered
            and self.first_pending() is not None
        )

    def expected_amount(self, passenger: Passenger) -> float:
        return passenger.ticket_count * self.ticket_price

    # ── Queue maintenance ─────────────────────────────────────────────

    def add_passenger(self, passenger: Passenger) -> None:
        if self.get(passenger.id) is not None:
            raise InvalidPassengerState(passenger.id, "duplicate_passenger")
        self._passengers.append(passenger)
        self._passengers.sort(key=lambda p: p.queue_position)
        self._notify()

    def replace_passengers(self, passengers: Iterable[Passenger]) -> None:
        self._passengers = sorted(passengers, key=lambda p: p.queue_position)
        target = self.session.active_passenger_id
        if target is not None and self.get(target) is None:
            self.session.release()
            self._emit("scan:cancel", passengerId=target, reason="passenger_removed")
        self._notify()

    # ── Scan protocol ─────────────────────────────────────────────────

    def start_scan(self) -> int:
        """Lock the session for the next PENDING passenger and return their id."""
        if self.disabled:
            self._block("queue_scan", BlockReason.PREPARATION_NOT_STARTED)

        self.expire_scan()
        if self.session.locked:
            self._block(
                "queue_scan",
                BlockReason.SCAN_IN_PROGRESS,
                passengerId=self.session.active_passenger_id,
            )

        passenger = self.first_pending()
        if passenger is None:
            self._block("queue_scan", BlockReason.NO_PASSENGERS_AVAILABLE)

        self.session.acquire(passenger.id, self._clock())
        self._emit("scan:start", passengerId=passenger.id)
        return passenger.id

    def request_scan(self) -> int:
        """``start_scan`` guarded by the one-decision-at-a-time policy."""
        if not self.scan_offered:
            self._block(
                "queue_scan",
                BlockReason.DECISION_PENDING,
                passengerIds=[p.id for p in self.pending_decisions],
            )
        return self.start_scan()

    def resolve_scan(self, outcome: ScanOutcome) -> Passenger:
        if not self.session.locked:
            self._emit("ui:blocked", action="scan_result", reason="no_active_session")
            raise NoActiveSession()

        passenger_id = self.session.release()
        passenger = self.get(passenger_id)
        if passenger is None:
            self._emit(
                "scan:result", passengerId=passenger_id, match=False,
                error="passenger_not_found",
            )
            raise InvalidPassengerState(passenger_id, "unknown_passenger")

        if isinstance(outcome, ScanSuccess):
            passenger.mark_scanned(
                QRData(sum=outcome.sum, recipient=outcome.recipient, created_at=self._clock())
            )
            self._emit(
                "scan:result", passengerId=passenger_id, match=True,
                amount=outcome.sum, expected=self.expected_amount(passenger),
            )
        else:
            passenger.mark_error()
            self._emit(
                "scan:result", passengerId=passenger_id, match=False,
                error=outcome.error,
            )
        self._notify()
        return passenger

    def on_confirm(self, sum: float, recipient: str) -> Passenger:
        return self.resolve_scan(ScanSuccess(sum=sum, recipient=recipient))

    def on_invalid(self, error: str = "invalid_qr") -> Passenger:
        return self.resolve_scan(ScanFailure(error=error))

    def cancel_scan(self, reason: str = "dismissed") -> bool:
        """Release the lock without a result. Returns False if nothing was locked."""
        passenger_id = self.session.release()
        if passenger_id is None:
            return False
        self._emit("scan:cancel", passengerId=passenger_id, reason=reason)
        return True

    def expire_scan(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        if not self.session.is_expired(now, self.scan_timeout):
            return False
        passenger_id = self.session.release()
        self._emit(
            "scan:timeout", passengerId=passenger_id,
            timeoutSeconds=self.scan_timeout.total_seconds(),
        )
        return True

    # ── Decisions ─────────────────────────────────────────────────────

    def accept(self, passenger_id: int) -> Passenger:
        passenger = self._decision_target(passenger_id, "accept")
        self._emit("accept:clicked", passengerId=passenger_id, amount=passenger.qr_data.sum)
        self._passengers.remove(passenger)
        self._on_accept(passenger_id)
        self._notify()
        return passenger

    def reject(self, passenger_id: int) -> Passenger:
        passenger = self._decision_target(passenger_id, "reject")
        self._emit("reject:clicked", passengerId=passenger_id, amount=passenger.qr_data.sum)
        self._passengers.remove(passenger)
        self._on_reject(passenger_id)
        self._notify()
        return passenger

    def return_to_queue(self, passenger_id: int) -> Passenger:
        passenger = self._require(passenger_id, "return")
        if passenger.scan_status is ScanStatus.PENDING:
            self._invalid("return", passenger_id, "not_scanned")
        previous = passenger.scan_status
        passenger.reset()
        self._emit("return:clicked", passengerId=passenger_id, previousStatus=previous.value)
        self._on_return(passenger_id)
        self._notify()
        return passenger

    # ── Internals ─────────────────────────────────────────────────────

    def _decision_target(self, passenger_id: int, action: str) -> Passenger:
        passenger = self._require(passenger_id, action)
        if not passenger.awaiting_decision:
            self._invalid(action, passenger_id, "not_scanned")
        return passenger

    def _require(self, passenger_id: int, action: str) -> Passenger:
        if self.disabled:
            self._invalid(action, passenger_id, BlockReason.PREPARATION_NOT_STARTED.value)
        passenger = self.get(passenger_id)
        if passenger is None:
            self._invalid(action, passenger_id, "unknown_passenger")
        return passenger

    def _invalid(self, action: str, passenger_id: int, reason: str) -> None:
        self._emit("ui:blocked", action=action, passengerId=passenger_id, reason=reason)
        raise InvalidPassengerState(passenger_id, reason)

    def _block(self, action: str, reason: BlockReason, **details: Any) -> None:
        self._emit("ui:blocked", action=action, reason=reason.value, **details)
        raise ScanBlocked(reason)

    def _emit(self, event_name: str, **details: Any) -> None:
        self._event_log.emit(event_name, {**details, "context": QUEUE_CONTEXT})

    def _refresh_first(self) -> None:
        first = self.first_pending()
        for passenger in self._passengers:
            passenger.is_first = passenger is first

    def _notify(self) -> None:
        self._refresh_first()
        self._on_update(self.passengers)
