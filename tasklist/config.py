"""Application configuration (settings and environment).

Settings come from ``TASKLIST_*`` environment variables and an optional
``.env`` file via pydantic-settings. Command-line options override them.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Task list settings loaded from environment and .env."""

    # Storage
    data_dir: Path = Path("~/.local/share/tasklist")
    origin: str = "default"
    storage_key: str = "tasks"
    quota_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # Staged clear: per-row fade delay and final settle time
    clear_stagger_ms: int = Field(default=50, ge=0)
    clear_settle_ms: int = Field(default=300, ge=0)

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="TASKLIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("data_dir", "log_file")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        """Expand ``~`` in configured paths."""
        return value.expanduser() if value is not None else None

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, value: str) -> str:
        """Origins name a file, so they must be a plain non-empty name."""
        value = value.strip()
        if not value or "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError(f"origin must be a plain name, got: {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise the level name to one loguru knows."""
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got: {value!r}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    In tests, call ``get_settings.cache_clear()`` after changing env vars.
    """
    return Settings()
