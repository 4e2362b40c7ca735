"""Pytest configuration and shared fixtures."""

import os
from datetime import time
from typing import Generator

import pytest

# Set test environment
os.environ.setdefault("CALENDAR_SYNC_LOG_LEVEL", "DEBUG")
os.environ.setdefault("CALENDAR_SYNC_TIME_ZONE", "America/Sao_Paulo")

from calendar_sync.adapters.memory import (  # noqa: E402
    InMemoryAlertSink,
    InMemoryCalendarService,
    InMemoryRecordStore,
)
from calendar_sync.conflict.models import LocalRecord, RemoteEvent, SyncMode  # noqa: E402
from calendar_sync.core.config import Settings, clear_settings_cache  # noqa: E402
from calendar_sync.core.engine import ConflictEngine  # noqa: E402


@pytest.fixture
def mock_settings() -> Generator:
    """Reset cached settings around a test."""
    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide explicit engine settings."""
    return Settings(
        time_zone="America/Sao_Paulo",
        default_all_day_time=time(9, 0, 0),
        session_duration_minutes=60,
        notified_keys_max=None,
    )


def build_record(
    record_id: str = "session-1",
    event_id: str | None = "event-1",
    mode: SyncMode = SyncMode.MIRRORED,
    day: str = "2024-03-01",
    at: str = "14:00:00",
    notes: str = "",
    location: str | None = "",
    client_name: str | None = "Ana Souza",
) -> LocalRecord:
    """Build a mirrored session; override fields per test."""
    return LocalRecord(
        id=record_id,
        mirror_event_id=event_id,
        mirror_mode=mode,
        date=day,
        time=at,
        notes=notes,
        location=location,
        client_name=client_name,
    )


def build_event(
    event_id: str = "event-1",
    start: str = "2024-03-01T14:00:00",
    all_day: bool = False,
    description: str | None = "",
    location: str | None = "",
) -> RemoteEvent:
    """Build a remote event from its Google wire shape."""
    start_payload = {"date": start} if all_day else {"dateTime": start}
    return RemoteEvent.model_validate(
        {
            "id": event_id,
            "summary": "Sessão - Ana Souza",
            "start": start_payload,
            "description": description,
            "location": location,
        }
    )


@pytest.fixture
def make_record():
    """Factory for sessions."""
    return build_record


@pytest.fixture
def make_event():
    """Factory for remote events."""
    return build_event


@pytest.fixture
def record() -> LocalRecord:
    """Session on 2024-03-01 at 14:00, mirrored to event-1."""
    return build_record()


@pytest.fixture
def matching_event() -> RemoteEvent:
    """Event identical to the ``record`` fixture."""
    return build_event()


@pytest.fixture
def moved_event() -> RemoteEvent:
    """Event moved one hour later on the remote side."""
    return build_event(start="2024-03-01T15:00:00")


@pytest.fixture
def record_store(record) -> InMemoryRecordStore:
    return InMemoryRecordStore([record])


@pytest.fixture
def calendar_service() -> InMemoryCalendarService:
    return InMemoryCalendarService()


@pytest.fixture
def alert_sink() -> InMemoryAlertSink:
    return InMemoryAlertSink()


@pytest.fixture
def engine(record_store, calendar_service, alert_sink, settings) -> ConflictEngine:
    """Engine wired to in-memory collaborators."""
    return ConflictEngine(
        record_store=record_store,
        calendar_service=calendar_service,
        alert_sink=alert_sink,
        user_id="user-1",
        settings=settings,
    )


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
