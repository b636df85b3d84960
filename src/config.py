"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Scan session
    scan_timeout_seconds: float = 60.0  # abandoned scan auto-cancel
    scan_watchdog_interval_seconds: float = 5.0

    # Fares
    ticket_price: float = 320.0  # RUB per ticket
    driver_name: str = "Driver"

    # Observability
    event_log_capacity: int = 500
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "PANEL_", "extra": "ignore"}


settings = Settings()
