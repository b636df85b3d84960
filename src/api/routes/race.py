"""
Race lifecycle endpoints
========================

GET  /api/v1/race                  -- current state, primary action, panels
POST /api/v1/race/actions/{action} -- apply the driver's primary action
PUT  /api/v1/race/stop             -- set the stop name shown on "Arrived"
POST /api/v1/race/legacy-status    -- import a legacy trip status
POST /api/v1/race/route-complete   -- the route is done; enter FINISHED
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_panel
from src.api.schemas import (
    ButtonResponse,
    LegacyStatusRequest,
    PanelsResponse,
    RaceResponse,
    StopNameRequest,
)
from src.domain.actions import action_for, panels_for
from src.domain.enums import TransitionAction
from src.domain.errors import InvalidStateTransition, UnknownStatus
from src.infrastructure.panel import DriverPanel

router = APIRouter(prefix="/race", tags=["race"])


def race_response(panel: DriverPanel) -> RaceResponse:
    state = panel.store.state
    button = action_for(state, panel.store.stop_name)
    return RaceResponse(
        state=state,
        button=ButtonResponse(
            label=button.label,
            display_label=button.display_label,
            action=button.action,
            enabled=button.enabled,
            stop_name=button.stop_name,
        ),
        panels=PanelsResponse.model_validate(panels_for(state)),
    )


@router.get("", response_model=RaceResponse, summary="Current race state")
async def get_race(panel: DriverPanel = Depends(get_panel)):
    return race_response(panel)


@router.post(
    "/actions/{action}",
    response_model=RaceResponse,
    summary="Apply the primary driver action",
    responses={409: {"description": "Action not offered in the current state."}},
)
async def apply_action(
    action: TransitionAction,
    panel: DriverPanel = Depends(get_panel),
):
    async with panel.lock:
        try:
            panel.store.apply(action)
        except InvalidStateTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc))
    return race_response(panel)


@router.put("/stop", response_model=RaceResponse, summary="Set the next stop name")
async def set_stop(body: StopNameRequest, panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        panel.store.stop_name = body.stop_name
    return race_response(panel)


@router.post(
    "/legacy-status",
    response_model=RaceResponse,
    summary="Apply a legacy trip status",
    responses={422: {"description": "Status outside the legacy vocabulary."}},
)
async def apply_legacy_status(
    body: LegacyStatusRequest,
    panel: DriverPanel = Depends(get_panel),
):
    async with panel.lock:
        try:
            panel.store.load_legacy_status(body.status)
        except UnknownStatus as exc:
            raise HTTPException(status_code=422, detail=str(exc))
    return race_response(panel)


@router.post(
    "/route-complete",
    response_model=RaceResponse,
    summary="Mark the route as complete",
    responses={409: {"description": "No route in progress."}},
)
async def route_complete(panel: DriverPanel = Depends(get_panel)):
    async with panel.lock:
        try:
            panel.store.mark_route_complete()
        except InvalidStateTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc))
    return race_response(panel)
