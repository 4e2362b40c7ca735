"""In-memory collaborators for embedding, dry runs and tests."""

from typing import Any

from calendar_sync.conflict.models import LocalRecord
from calendar_sync.core.errors import CalendarServiceError, RecordStoreError
from calendar_sync.ports import AlertSink, CalendarService, RecordStore


class InMemoryRecordStore(RecordStore):
    """Keeps LocalRecords in a dict and applies updates to them."""

    def __init__(self, records: list[LocalRecord] | None = None):
        self.records: dict[str, LocalRecord] = {r.id: r for r in records or []}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.fail_with: str | None = None

    async def update_record(self, record_id: str, fields: dict[str, Any]) -> None:
        if self.fail_with is not None:
            raise RecordStoreError(record_id, self.fail_with)

        record = self.records.get(record_id)
        if record is None:
            raise RecordStoreError(record_id, "no such session")

        for name, value in fields.items():
            setattr(record, name, value)
        self.updates.append((record_id, dict(fields)))


class InMemoryCalendarService(CalendarService):
    """Records every event body written, keyed by event id."""

    def __init__(self):
        self.events: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_with: str | None = None

    async def put_event(self, event_id: str, access_token: str, body: dict[str, Any]) -> None:
        self.calls.append((event_id, access_token, body))
        if self.fail_with is not None:
            raise CalendarServiceError(event_id, self.fail_with)
        self.events[event_id] = dict(body)


class InMemoryAlertSink(AlertSink):
    """Collects alerts as (user_id, title, body) tuples."""

    def __init__(self):
        self.alerts: list[tuple[str, str, str]] = []
        self.fail_with: str | None = None

    async def create_alert(self, user_id: str, title: str, body: str) -> None:
        if self.fail_with is not None:
            raise RuntimeError(self.fail_with)
        self.alerts.append((user_id, title, body))
