"""
Background Scan Watchdog
========================

Runs every ``SCAN_WATCHDOG_INTERVAL_SECONDS`` (default 5 s).

A scan dialog that is closed without reporting a result would leave the
vehicle's scan session locked and the whole queue blocked.  Each cycle
releases a session that has been open longer than
``SCAN_TIMEOUT_SECONDS``.
"""

from __future__ import annotations

import asyncio
import logging

from src.config import settings
from src.infrastructure.panel import DriverPanel, get_driver_panel

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_scan_watchdog() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Scan watchdog started (interval=%.1fs, timeout=%.1fs)",
        settings.scan_watchdog_interval_seconds,
        settings.scan_timeout_seconds,
    )


async def stop_scan_watchdog() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Scan watchdog stopped")


async def run_watchdog_cycle(panel: DriverPanel | None = None) -> bool:
    """Expire an abandoned scan.  Returns True if a session was released."""
    panel = panel or get_driver_panel()
    async with panel.lock:
        expired = panel.queue.expire_scan()
    if expired:
        logger.warning("Abandoned scan session released")
    return expired


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_watchdog_cycle()
        except Exception:
            logger.exception("Unhandled error in scan watchdog cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.scan_watchdog_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle
