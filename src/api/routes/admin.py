"""
Admin / observability endpoints
===============================

GET /api/v1/admin/events  -- recent panel events, newest last
GET /api/v1/admin/health  -- simple health check
"""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_panel
from src.api.schemas import EventResponse, HealthResponse
from src.infrastructure.panel import DriverPanel

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/events",
    response_model=list[EventResponse],
    summary="List recent panel events",
)
async def get_events(
    name: str | None = Query(None, description="Only events with this name."),
    limit: int = Query(100, ge=1, le=1000),
    panel: DriverPanel = Depends(get_panel),
):
    events = [e for e in panel.events.events if name is None or e.name == name]
    return [
        EventResponse(event=e.name, details=e.details, timestamp=e.timestamp)
        for e in events[-limit:]
    ]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
