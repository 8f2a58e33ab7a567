from __future__ import annotations

from pydantic_settings import BaseSettings


class CustodySettings(BaseSettings):
    """Settings shared by every environment."""

    DATABASE_URL: str | None = None
    APP_ENV: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Comma separated or JSON array; see main.get_cors_origins
    CORS_ORIGINS: str = ""

    # Weekday boundaries for compliance alerts are evaluated in this zone
    FACILITY_TIMEZONE: str = "UTC"
    ALERT_WEEKDAY_MAX_HOURS: float = 38
    ALERT_FRIDAY_MAX_HOURS: float = 66

    # Extra attempts when a concurrent scan advanced the same asset first
    CUSTODY_CAS_RETRIES: int = 2

    # Default size of the checkpoint activity feed
    FEED_LIMIT: int = 50
