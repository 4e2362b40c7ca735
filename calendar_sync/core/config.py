"""Configuration management using Pydantic Settings."""

from datetime import time
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CALENDAR_SYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for rotating log files (stderr only when unset)",
    )

    # Calendar semantics
    time_zone: str = Field(
        default="America/Sao_Paulo",
        description="Time zone attached to events written to the remote calendar",
    )
    default_all_day_time: time = Field(
        default=time(9, 0, 0),
        description="Wall-clock time assumed for all-day remote events",
    )
    session_duration_minutes: int = Field(
        default=60,
        ge=1,
        le=24 * 60,
        description="Length of a session when pushing it to the remote calendar",
    )
    event_summary_prefix: str = Field(
        default="Sessão",
        description="Prefix of the remote event title",
    )
    default_client_name: str = Field(
        default="Cliente",
        description="Client name used in event titles when the record has none",
    )

    # Google Calendar
    google_api_base_url: str = Field(
        default="https://www.googleapis.com/calendar/v3",
        description="Google Calendar REST API root",
    )
    google_calendar_id: str = Field(
        default="primary",
        description="Calendar holding the mirrored events",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for remote calendar requests",
    )

    # Alert deduplication
    notified_keys_max: int | None = Field(
        default=None,
        ge=1,
        description="Upper bound on remembered alert keys (unbounded when unset)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.session_duration_minutes
        60
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
