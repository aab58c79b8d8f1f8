"""
Centralized settings for eggtimer.

All fields can be set via ``EGGTIMER_*`` environment variables (e.g.
``EGGTIMER_PORT=3000``, ``EGGTIMER_STORE_BACKEND=sqlite``) or a ``.env``
file in the working directory.

Order of precedence (highest → lowest):
    1. Environment variables
    2. ``.env`` file
    3. Defaults below
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    MEMORY = "memory"
    SQLITE = "sqlite"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"
    AUTO = "auto"


class EggTimerSettings(BaseSettings):
    """eggtimer configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EGGTIMER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    debug: bool = Field(default=False, description="Expose exception details in 500 responses")

    # ── API ──────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api", description="URL prefix for timer endpoints")
    api_title: str = Field(default="eggtimer", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── Store ────────────────────────────────────────────────────
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY)
    sqlite_path: str = Field(default="~/.eggtimer/timers.db")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default=LogFormat.AUTO)

    @property
    def json_logs(self) -> bool | None:
        """``configure_logging`` flag: None lets it auto-detect from the tty."""
        if self.log_format is LogFormat.AUTO:
            return None
        return self.log_format is LogFormat.JSON


@lru_cache(maxsize=1)
def get_settings() -> EggTimerSettings:
    """Cached settings -- loaded once per process."""
    return EggTimerSettings()


__all__ = ["EggTimerSettings", "LogFormat", "StoreBackend", "get_settings"]
