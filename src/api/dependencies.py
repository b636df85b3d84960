"""FastAPI dependency injection helpers."""

from src.infrastructure.panel import DriverPanel, get_driver_panel


def get_panel() -> DriverPanel:
    """Return the vehicle's driver panel (store + queue + event log)."""
    return get_driver_panel()
