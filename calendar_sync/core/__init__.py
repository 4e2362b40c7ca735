"""Core module - engine facade, configuration, logging and errors."""

from calendar_sync.core.config import Settings, get_settings
from calendar_sync.core.engine import ConflictEngine
from calendar_sync.core.errors import (
    CalendarServiceError,
    CalendarSyncError,
    MissingCredentialError,
    RecordStoreError,
    TransportError,
)
from calendar_sync.core.logging import configure_logging

__all__ = [
    "CalendarServiceError",
    "CalendarSyncError",
    "ConflictEngine",
    "MissingCredentialError",
    "RecordStoreError",
    "Settings",
    "TransportError",
    "configure_logging",
    "get_settings",
]
