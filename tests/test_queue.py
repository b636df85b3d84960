"""Unit tests for the boarding queue controller and its scan protocol."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from src.domain.entities import Passenger, QRData
from src.domain.enums import BlockReason, ScanStatus
from src.domain.errors import InvalidPassengerState, NoActiveSession, ScanBlocked
from src.domain.queue import ScanFailure, ScanSuccess
from tests.conftest import make_passenger


class TestStartScan:
    def test_selects_single_pending_passenger(self, build_controller, events):
        # Scenario A, first half
        controller = build_controller(make_passenger(1, ticket_count=2))
        assert controller.start_scan() == 1
        assert controller.session.locked
        assert controller.session.active_passenger_id == 1
        assert events.last().name == "scan:start"
        assert events.last().details["passengerId"] == 1

    def test_skips_errored_passenger(self, build_controller):
        # Scenario B
        controller = build_controller(
            make_passenger(1, status=ScanStatus.ERROR),
            make_passenger(2),
        )
        assert controller.start_scan() == 2

    def test_selects_minimum_pending_position(self, build_controller):
        controller = build_controller(
            make_passenger(10, position=4),
            make_passenger(11, position=1, status=ScanStatus.SCANNED),
            make_passenger(12, position=3),
            make_passenger(13, position=2, status=ScanStatus.ERROR),
            make_passenger(14, position=5),
        )
        assert controller.start_scan() == 12

    def test_order_comes_from_position_not_insertion(self, build_controller):
        controller = build_controller(make_passenger(1, position=3), make_passenger(2, position=1))
        assert controller.start_scan() == 2

    def test_disabled_blocks(self, build_controller, events):
        # Scenario C
        controller = build_controller(make_passenger(1), disabled=True)
        with pytest.raises(ScanBlocked) as exc_info:
            controller.start_scan()
        assert exc_info.value.reason is BlockReason.PREPARATION_NOT_STARTED
        assert not controller.session.locked
        assert events.last().name == "ui:blocked"
        assert events.last().details["reason"] == "preparation_not_started"

    def test_no_pending_passengers_blocks(self, build_controller, events):
        controller = build_controller(
            make_passenger(1, status=ScanStatus.ERROR),
            make_passenger(2, status=ScanStatus.SCANNED),
        )
        with pytest.raises(ScanBlocked) as exc_info:
            controller.start_scan()
        assert exc_info.value.reason is BlockReason.NO_PASSENGERS_AVAILABLE
        assert events.last().details["reason"] == "no_passengers_available"

    def test_empty_queue_blocks(self, build_controller):
        with pytest.raises(ScanBlocked):
            build_controller().start_scan()

    def test_second_scan_blocked_while_locked(self, build_controller):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        with pytest.raises(ScanBlocked) as exc_info:
            controller.start_scan()
        assert exc_info.value.reason is BlockReason.SCAN_IN_PROGRESS
        assert controller.session.active_passenger_id == 1


class TestResolveScan:
    def test_success_attaches_qr_data(self, build_controller, clock, updates):
        # Scenario A, second half
        controller = build_controller(make_passenger(1, ticket_count=2))
        controller.start_scan()
        passenger = controller.resolve_scan(ScanSuccess(sum=640, recipient="Driver X"))

        assert passenger.scan_status is ScanStatus.SCANNED
        assert passenger.qr_data.sum == 640
        assert passenger.qr_data.recipient == "Driver X"
        assert passenger.qr_data.created_at == clock.now
        assert not controller.session.locked
        assert updates[-1][0].scan_status is ScanStatus.SCANNED

    def test_failure_marks_error_and_clears_data(self, build_controller):
        controller = build_controller(make_passenger(1))
        controller.start_scan()
        passenger = controller.resolve_scan(ScanFailure())

        assert passenger.scan_status is ScanStatus.ERROR
        assert passenger.qr_data is None
        assert not controller.session.locked

    @pytest.mark.parametrize(
        "outcome", [ScanSuccess(sum=320, recipient="Driver X"), ScanFailure()]
    )
    def test_lock_released_for_every_outcome(self, build_controller, outcome):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        controller.resolve_scan(outcome)
        assert not controller.session.locked
        assert controller.session.active_passenger_id is None

    def test_result_event_carries_amount(self, build_controller, events):
        controller = build_controller(make_passenger(1, ticket_count=2))
        controller.start_scan()
        controller.on_confirm(640, "Driver X")
        result = events.last("scan:result")
        assert result.details["match"] is True
        assert result.details["amount"] == 640
        assert result.details["expected"] == 640

    def test_invalid_callback_reports_failure(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        controller.start_scan()
        controller.on_invalid("qr_not_found")
        assert controller.get(1).scan_status is ScanStatus.ERROR
        assert events.last("scan:result").details["error"] == "qr_not_found"

    def test_resolve_without_session(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        with pytest.raises(NoActiveSession):
            controller.resolve_scan(ScanSuccess(sum=320, recipient="Driver X"))
        assert controller.get(1).scan_status is ScanStatus.PENDING
        assert events.last().details["reason"] == "no_active_session"

    def test_resolve_after_target_removed_still_unlocks(self, build_controller):
        controller = build_controller(make_passenger(1))
        controller.start_scan()
        # target leaves the queue without the session noticing
        controller._passengers.clear()
        with pytest.raises(InvalidPassengerState):
            controller.resolve_scan(ScanSuccess(sum=320, recipient="Driver X"))
        assert not controller.session.locked

    def test_next_scan_moves_on_after_result(self, build_controller):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        controller.resolve_scan(ScanFailure())
        assert controller.start_scan() == 2


class TestCancelAndTimeout:
    def test_cancel_releases_without_mutation(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        controller.start_scan()
        assert controller.cancel_scan() is True
        assert not controller.session.locked
        assert controller.get(1).scan_status is ScanStatus.PENDING
        assert events.last().name == "scan:cancel"

    def test_cancel_is_idempotent(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        assert controller.cancel_scan() is False
        assert controller.cancel_scan() is False
        assert "scan:cancel" not in events.names()

    def test_expire_before_timeout_keeps_lock(self, build_controller, clock):
        controller = build_controller(make_passenger(1), scan_timeout=timedelta(seconds=30))
        controller.start_scan()
        clock.advance(29)
        assert controller.expire_scan() is False
        assert controller.session.locked

    def test_expire_after_timeout_releases(self, build_controller, clock, events):
        controller = build_controller(make_passenger(1), scan_timeout=timedelta(seconds=30))
        controller.start_scan()
        clock.advance(30)
        assert controller.expire_scan() is True
        assert not controller.session.locked
        assert events.last().name == "scan:timeout"

    def test_abandoned_scan_does_not_block_forever(self, build_controller, clock):
        controller = build_controller(make_passenger(1), scan_timeout=timedelta(seconds=30))
        controller.start_scan()
        clock.advance(31)
        assert controller.start_scan() == 1


class TestDecisions:
    def test_accept_removes_passenger(self, build_controller, events, updates):
        on_accept = Mock()
        controller = build_controller(
            make_passenger(1, status=ScanStatus.SCANNED),
            make_passenger(2),
            on_accept=on_accept,
        )
        controller.accept(1)

        on_accept.assert_called_once_with(1)
        assert [p.id for p in controller.passengers] == [2]
        assert [p.id for p in updates[-1]] == [2]
        assert events.last("accept:clicked").details["passengerId"] == 1

    def test_reject_removes_passenger(self, build_controller, events):
        # Scenario D
        on_reject = Mock()
        controller = build_controller(
            make_passenger(1, status=ScanStatus.SCANNED), on_reject=on_reject
        )
        controller.reject(1)

        on_reject.assert_called_once_with(1)
        assert controller.get(1) is None
        assert events.last("reject:clicked") is not None

    @pytest.mark.parametrize("status", [ScanStatus.PENDING, ScanStatus.ERROR])
    @pytest.mark.parametrize("decision", ["accept", "reject"])
    def test_decision_requires_scanned(self, build_controller, updates, status, decision):
        callback = Mock()
        controller = build_controller(
            make_passenger(1, status=status), **{f"on_{decision}": callback}
        )
        with pytest.raises(InvalidPassengerState) as exc_info:
            getattr(controller, decision)(1)

        assert exc_info.value.reason == "not_scanned"
        assert controller.get(1).scan_status is status
        callback.assert_not_called()
        assert updates == []

    def test_decision_on_unknown_passenger(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        with pytest.raises(InvalidPassengerState) as exc_info:
            controller.accept(99)
        assert exc_info.value.reason == "unknown_passenger"
        assert events.last().name == "ui:blocked"

    @pytest.mark.parametrize("status", [ScanStatus.SCANNED, ScanStatus.ERROR])
    def test_return_resets_to_pending(self, build_controller, status):
        on_return = Mock()
        controller = build_controller(
            make_passenger(1, position=2, status=status), on_return=on_return
        )
        passenger = controller.return_to_queue(1)

        assert passenger.scan_status is ScanStatus.PENDING
        assert passenger.qr_data is None
        assert passenger.queue_position == 2
        on_return.assert_called_once_with(1)

    def test_return_pending_is_invalid(self, build_controller):
        controller = build_controller(make_passenger(1))
        with pytest.raises(InvalidPassengerState):
            controller.return_to_queue(1)

    def test_returned_passenger_is_scanned_first_again(self, build_controller):
        controller = build_controller(
            make_passenger(1, status=ScanStatus.ERROR),
            make_passenger(2),
        )
        controller.return_to_queue(1)
        assert controller.start_scan() == 1


class TestScanPolicy:
    def test_scan_withheld_while_decision_pending(self, build_controller):
        controller = build_controller(
            make_passenger(1, status=ScanStatus.SCANNED), make_passenger(2)
        )
        assert controller.scan_offered is False
        assert controller.can_scan is False
        with pytest.raises(ScanBlocked) as exc_info:
            controller.request_scan()
        assert exc_info.value.reason is BlockReason.DECISION_PENDING
        assert not controller.session.locked

    def test_scan_offered_again_after_decision(self, build_controller):
        controller = build_controller(
            make_passenger(1, status=ScanStatus.SCANNED), make_passenger(2)
        )
        controller.accept(1)
        assert controller.can_scan is True
        assert controller.request_scan() == 2

    def test_errored_passengers_do_not_withhold_scan(self, build_controller):
        controller = build_controller(
            make_passenger(1, status=ScanStatus.ERROR), make_passenger(2)
        )
        assert controller.scan_offered is True

    def test_can_scan_false_while_locked(self, build_controller):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        assert controller.can_scan is False


class TestQueueMaintenance:
    def test_is_first_tracks_lowest_pending(self, build_controller):
        controller = build_controller(make_passenger(1), make_passenger(2))
        assert controller.get(1).is_first
        assert not controller.get(2).is_first

        controller.start_scan()
        controller.resolve_scan(ScanFailure())
        assert not controller.get(1).is_first
        assert controller.get(2).is_first

    def test_update_carries_full_list(self, build_controller, updates):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        controller.resolve_scan(ScanFailure())
        assert [p.id for p in updates[-1]] == [1, 2]

    def test_add_passenger_keeps_position_order(self, build_controller, updates):
        controller = build_controller(make_passenger(1, position=1), make_passenger(3, position=3))
        controller.add_passenger(make_passenger(2, position=2))
        assert [p.id for p in controller.passengers] == [1, 2, 3]
        assert len(updates) == 1

    def test_add_duplicate_rejected(self, build_controller):
        controller = build_controller(make_passenger(1))
        with pytest.raises(InvalidPassengerState):
            controller.add_passenger(make_passenger(1))

    def test_replace_releases_orphaned_scan(self, build_controller, events):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        controller.replace_passengers([make_passenger(2)])
        assert not controller.session.locked
        assert events.last("scan:cancel").details["reason"] == "passenger_removed"

    def test_replace_keeps_scan_on_surviving_target(self, build_controller):
        controller = build_controller(make_passenger(1), make_passenger(2))
        controller.start_scan()
        controller.replace_passengers([make_passenger(1), make_passenger(3)])
        assert controller.session.active_passenger_id == 1

    def test_expected_amount_uses_ticket_price(self, build_controller):
        controller = build_controller(make_passenger(1, ticket_count=3))
        assert controller.expected_amount(controller.get(1)) == 960

    def test_events_carry_queue_context(self, build_controller, events):
        controller = build_controller(make_passenger(1))
        controller.start_scan()
        assert all(e.details["context"] == "queue" for e in events.events)


class TestPassengerInvariant:
    def test_error_with_qr_data_rejected(self):
        qr = QRData(sum=320, recipient="Driver X", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        with pytest.raises(ValueError):
            Passenger(id=1, queue_position=1, scan_status=ScanStatus.ERROR, qr_data=qr)

    def test_pending_with_qr_data_rejected(self):
        qr = QRData(sum=320, recipient="Driver X", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        with pytest.raises(ValueError):
            Passenger(id=1, queue_position=1, qr_data=qr)

    def test_scanned_without_qr_data_rejected(self):
        with pytest.raises(ValueError):
            Passenger(id=1, queue_position=1, scan_status=ScanStatus.SCANNED)

    def test_consistent_passengers_construct(self):
        qr = QRData(sum=320, recipient="Driver X", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        assert Passenger(id=1, scan_status=ScanStatus.SCANNED, qr_data=qr).awaiting_decision
        assert Passenger(id=2, scan_status=ScanStatus.ERROR).qr_data is None


class TestDisabledQueue:
    @pytest.mark.parametrize(
        "decision, status",
        [
            ("accept", ScanStatus.SCANNED),
            ("reject", ScanStatus.SCANNED),
            ("return_to_queue", ScanStatus.SCANNED),
            ("return_to_queue", ScanStatus.ERROR),
        ],
    )
    def test_decisions_blocked_while_disabled(self, build_controller, events, updates, decision, status):
        controller = build_controller(make_passenger(1, status=status), disabled=True)
        with pytest.raises(InvalidPassengerState) as exc_info:
            getattr(controller, decision)(1)

        assert exc_info.value.reason == "preparation_not_started"
        assert controller.get(1).scan_status is status
        assert updates == []
        assert events.last().name == "ui:blocked"
        assert events.last().details["reason"] == "preparation_not_started"

    def test_decisions_allowed_once_enabled(self, build_controller):
        controller = build_controller(make_passenger(1, status=ScanStatus.SCANNED), disabled=True)
        controller.disabled = False
        controller.accept(1)
        assert controller.passengers == []
