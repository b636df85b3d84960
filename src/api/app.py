"""
FastAPI application factory.

* Registers routes for the race lifecycle, the boarding queue and admin.
* Starts / stops the background scan watchdog via lifespan events.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from src.api.routes import admin, queue, race
from src.config import settings
from src.workers import scan_watchdog as _watchdog

logging.basicConfig(level=settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the scan watchdog on startup; stop on shutdown."""
    await _watchdog.start_scan_watchdog()
    yield
    await _watchdog.stop_scan_watchdog()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shuttle Driver Panel API",
        description=(
            "Drives a shuttle's trip lifecycle and the QR-payment boarding "
            "queue at each stop.  One vehicle per process; state is held "
            "in memory."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Routers
    app.include_router(race.router, prefix="/api/v1")
    app.include_router(queue.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
