"""
Collaborator interfaces consumed by the reconciliation engine.

The engine never talks to storage, the calendar API or the notification
system directly; the host application injects implementations of these.
"""

from abc import ABC, abstractmethod
from typing import Any


class RecordStore(ABC):
    """Write access to platform sessions."""

    @abstractmethod
    async def update_record(self, record_id: str, fields: dict[str, Any]) -> None:
        """
        Partially update a session.

        Args:
            record_id: Session identifier
            fields: Subset of date, time, notes, location, last_synced_at

        Raises:
            RecordStoreError: If the update was rejected
        """
        pass


class CalendarService(ABC):
    """Write access to the external calendar."""

    @abstractmethod
    async def put_event(self, event_id: str, access_token: str, body: dict[str, Any]) -> None:
        """
        Overwrite a remote event. Fields missing from ``body`` are cleared.

        Args:
            event_id: Remote event identifier
            access_token: OAuth bearer token for the calendar API
            body: Event resource (summary, description, location, start, end)

        Raises:
            CalendarServiceError: If the write was rejected
        """
        pass


class AlertSink(ABC):
    """User-facing notification channel."""

    @abstractmethod
    async def create_alert(self, user_id: str, title: str, body: str) -> None:
        """Deliver one alert. Failures may raise; callers treat them as advisory."""
        pass
