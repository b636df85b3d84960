"""
Shared test fixtures.

Everything is in memory: a recording event log instead of the logging
backend, a hand-cranked clock for scan timeouts, and a fresh driver panel
per API test.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.domain.entities import Passenger, QRData
from src.domain.enums import ScanStatus
from src.domain.queue import QueueBoardingController
from src.infrastructure.event_log import RecordingEventLog
from src.infrastructure.panel import DriverPanel, reset_driver_panel


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_passenger(
    id: int,
    position: int | None = None,
    status: ScanStatus = ScanStatus.PENDING,
    ticket_count: int = 1,
    **kwargs,
) -> Passenger:
    passenger = Passenger(
        id=id,
        name=kwargs.pop("name", f"Passenger {id}"),
        queue_position=position if position is not None else id,
        ticket_count=ticket_count,
        order_number=kwargs.pop("order_number", 1000 + id),
        **kwargs,
    )
    if status is ScanStatus.SCANNED:
        passenger.mark_scanned(
            QRData(
                sum=ticket_count * 320,
                recipient="Driver X",
                created_at=datetime(2024, 5, 1, 7, 59, tzinfo=timezone.utc),
            )
        )
    elif status is ScanStatus.ERROR:
        passenger.mark_error()
    return passenger


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def events() -> RecordingEventLog:
    return RecordingEventLog()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def updates() -> list:
    return []


@pytest.fixture
def build_controller(events, clock, updates):
    """Factory: controller over the given passengers with recorded callbacks."""

    def _build(*passengers: Passenger, **kwargs) -> QueueBoardingController:
        controller = QueueBoardingController(
            passengers,
            event_log=events,
            on_update=updates.append,
            on_accept=kwargs.pop("on_accept", None),
            on_reject=kwargs.pop("on_reject", None),
            on_return=kwargs.pop("on_return", None),
            clock=clock,
            scan_timeout=kwargs.pop("scan_timeout", timedelta(seconds=60)),
            **kwargs,
        )
        return controller

    return _build


@pytest.fixture
def panel() -> DriverPanel:
    return reset_driver_panel()


@pytest_asyncio.fixture
async def client(panel) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against a fresh in-memory driver panel."""
    with (
        patch(
            "src.workers.scan_watchdog.start_scan_watchdog",
            new_callable=AsyncMock,
        ),
        patch(
            "src.workers.scan_watchdog.stop_scan_watchdog",
            new_callable=AsyncMock,
        ),
    ):
        from src.api.app import create_app

        app = create_app()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
