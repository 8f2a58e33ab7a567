from __future__ import annotations

from pathlib import Path
from pydantic_settings import SettingsConfigDict

from config.base import CustodySettings

ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = ROOT / "env" / ".env.test"


class TestSettings(CustodySettings):
    # In-memory SQLite; tests build their own engine on top of this URL
    DATABASE_URL: str | None = "sqlite+aiosqlite://"
    APP_ENV: str = "test"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"
    FACILITY_TIMEZONE: str = "UTC"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
    )
