"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.domain.enums import RaceState, ScanStatus, TransitionAction


# ── Requests ──────────────────────────────────────────────────────────


class PassengerCreateRequest(BaseModel):
    id: int
    name: str = ""
    queue_position: int = Field(..., ge=1)
    count: int = Field(1, ge=1, le=20)
    ticket_count: int = Field(1, ge=1, le=20)
    order_number: int = 0


class LegacyStatusRequest(BaseModel):
    status: str = Field(..., description="Legacy trip status, e.g. PREP_TIMER.")


class StopNameRequest(BaseModel):
    stop_name: Optional[str] = None


class ScanConfirmRequest(BaseModel):
    sum: float = Field(..., ge=0)
    recipient: str


class ScanInvalidRequest(BaseModel):
    error: str = "invalid_qr"


# ── Responses ─────────────────────────────────────────────────────────


class ButtonResponse(BaseModel):
    label: str
    display_label: str
    action: TransitionAction
    enabled: bool
    stop_name: Optional[str] = None


class PanelsResponse(BaseModel):
    main_button: bool
    queue: bool
    reservation: bool
    cash: bool

    model_config = {"from_attributes": True}


class RaceResponse(BaseModel):
    state: RaceState
    button: ButtonResponse
    panels: PanelsResponse


class QRDataResponse(BaseModel):
    sum: float
    recipient: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PassengerResponse(BaseModel):
    id: int
    name: str
    queue_position: int
    is_first: bool
    count: int
    ticket_count: int
    order_number: int
    scan_status: ScanStatus
    qr_data: Optional[QRDataResponse] = None

    model_config = {"from_attributes": True}


class QueueResponse(BaseModel):
    passengers: list[PassengerResponse] = []
    scan_locked: bool
    active_passenger_id: Optional[int] = None
    scan_offered: bool
    can_scan: bool
    disabled: bool


class ScanStartResponse(BaseModel):
    passenger_id: int
    expected_amount: float
    recipient: str


class EventResponse(BaseModel):
    event: str
    details: dict[str, Any] = {}
    timestamp: datetime


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
