"""Concrete collaborators for the engine's ports."""

from calendar_sync.adapters.google_calendar import GoogleCalendarClient
from calendar_sync.adapters.memory import (
    InMemoryAlertSink,
    InMemoryCalendarService,
    InMemoryRecordStore,
)

__all__ = [
    "GoogleCalendarClient",
    "InMemoryAlertSink",
    "InMemoryCalendarService",
    "InMemoryRecordStore",
]
