"""
Boarding queue endpoints
========================

GET  /api/v1/queue                              -- passengers + scan state
POST /api/v1/queue/passengers                   -- add a passenger
PUT  /api/v1/queue/passengers                   -- replace the whole queue
POST /api/v1/queue/scan                         -- start scanning the next passenger
POST /api/v1/queue/scan/confirm                 -- device: QR matched
POST /api/v1/queue/scan/invalid                 -- device: QR invalid / not found
POST /api/v1/queue/scan/cancel                  -- scan dialog dismissed
POST /api/v1/queue/passengers/{id}/accept       -- board a scanned passenger
POST /api/v1/queue/passengers/{id}/reject       -- decline a scanned passenger
POST /api/v1/queue/passengers/{id}/return       -- undo a scan result

Refusals are answered with 409 and the machine-readable reason as
``detail``; the event log already has the ``ui:blocked`` entry.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_panel
from src.api.schemas import (
    PassengerCreateRequest,
    PassengerResponse,
    QueueResponse,
    ScanConfirmRequest,
    ScanInvalidRequest,
    ScanStartResponse,
)
from src.domain.entities import Passenger
from src.domain.errors import InvalidPassengerState, NoActiveSession, ScanBlocked
from src.infrastructure.panel import DriverPanel

router = APIRouter(prefix="/queue", tags=["queue"])


def queue_response(panel: DriverPanel) -> QueueResponse:
    queue = panel.queue
    return QueueResponse(
        passengers=[PassengerResponse.model_validate(p) for p in queue.passengers],
        scan_locked=queue.session.locked,
        active_passenger_id=queue.session.active_passenger_id,
        scan_offered=queue.scan_offered,
        can_scan=queue.can_scan,
        disabled=queue.disabled,
    )


def _passenger_error(exc: InvalidPassengerState) -> HTTPException:
    status = 404 if exc.reason == "unknown_passenger" else 409
    return HTTPException(status_code=status, detail=exc.reason)


@router.get("", response_model=QueueResponse, summary="Boarding queue")
async def get_queue(panel: DriverPanel = Depends(get_panel)):
    return queue_response(panel)


@router.post(
    "/passengers",
    status_code=201,
    response_model=QueueResponse,
    summary="Add a passenger to the queue",
)
async def add_passenger(
    body: PassengerCreateRequest,
    panel: DriverPanel = Depends(get_panel),
):
    async with panel.lock:
        try:
            panel.queue.add_passenger(Passenger(**body.model_dump()))
        except InvalidPassengerState as exc:
            raise HTTPException(status_code=409, detail=exc.reason)
    return queue_response(panel)


@router.put("/passengers", response_model=QueueResponse, summary="Replace the queue")
async def replace_passengers(
    body: list[PassengerCreateRequest],
    panel: DriverPanel = Depends(get_panel),
):
    ids = [p.id for p in body]
    if len(ids) != len(set(ids)):
        raise HTTPException(status_code=422, detail="duplicate_passenger")
    async with panel.lock:
        panel.queue.replace_passengers(Passenger(**p.model_dump()) for p in body)
    return queue_response(panel)


# ── Scan protocol ─────────────────────────────────────────────────────


@router.post(
    "/scan",
    response_model=ScanStartResponse,
    summary="Start scanning the next passenger",
    responses={409: {"description": "Scan blocked; detail carries the reason."}},
)
async def start_scan(panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            passenger_id = panel.queue.request_scan()
        except ScanBlocked as exc:
            raise HTTPException(status_code=409, detail=exc.reason.value)
        passenger = panel.queue.get(passenger_id)
        return ScanStartResponse(
            passenger_id=passenger_id,
            expected_amount=panel.queue.expected_amount(passenger),
            recipient=panel.driver_name,
        )


@router.post("/scan/confirm", response_model=QueueResponse, summary="QR code matched")
async def confirm_scan(body: ScanConfirmRequest, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.queue.on_confirm(body.sum, body.recipient)
        except NoActiveSession:
            raise HTTPException(status_code=409, detail="no_active_session")
        except InvalidPassengerState as exc:
            raise _passenger_error(exc)
    return queue_response(panel)


@router.post("/scan/invalid", response_model=QueueResponse, summary="QR code rejected")
async def invalid_scan(body: ScanInvalidRequest, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.queue.on_invalid(body.error)
        except NoActiveSession:
            raise HTTPException(status_code=409, detail="no_active_session")
        except InvalidPassengerState as exc:
            raise _passenger_error(exc)
    return queue_response(panel)


@router.post("/scan/cancel", response_model=QueueResponse, summary="Scan dialog dismissed")
async def cancel_scan(panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        panel.queue.cancel_scan()
    return queue_response(panel)


# ── Decisions ─────────────────────────────────────────────────────────


@router.post(
    "/passengers/{passenger_id}/accept",
    response_model=QueueResponse,
    summary="Board a scanned passenger",
)
async def accept_passenger(passenger_id: int, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.queue.accept(passenger_id)
        except InvalidPassengerState as exc:
            raise _passenger_error(exc)
    return queue_response(panel)


@router.post(
    "/passengers/{passenger_id}/reject",
    response_model=QueueResponse,
    summary="Decline a scanned passenger",
)
async def reject_passenger(passenger_id: int, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.queue.reject(passenger_id)
        except InvalidPassengerState as exc:
            raise _passenger_error(exc)
    return queue_response(panel)


@router.post(
    "/passengers/{passenger_id}/return",
    response_model=QueueResponse,
    summary="Undo a scan result",
)
async def return_passenger(passenger_id: int, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.queue.return_to_queue(passenger_id)
        except InvalidPassengerState as exc:
            raise _passenger_error(exc)
    return queue_response(panel)
