"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./tripsync.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone name (or UTC offset) used for timestamps",
    )
    reconciler_enabled: bool = Field(
        default=True,
        description="Start the background reconciliation scheduler with the app",
    )
    reconciler_interval_seconds: float = Field(
        default=300.0,
        description="Seconds between two reconciliation ticks",
        gt=0,
    )
    dispatch_batch_size: int = Field(
        default=500,
        description="Maximum number of scheduled notifications claimed per tick",
        gt=0,
    )
    log_level: str = Field(
        default="INFO",
        description="Log level applied to the tripsync logger hierarchy",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
