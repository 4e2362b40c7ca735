"""Exception taxonomy for the reconciliation engine."""


class CalendarSyncError(Exception):
    """Base class for engine errors."""


class TransportError(CalendarSyncError):
    """A write to the local store or the remote calendar was rejected."""


class RecordStoreError(TransportError):
    """The local session store rejected an update."""

    def __init__(self, record_id: str, message: str):
        self.record_id = record_id
        super().__init__(f"Could not update record {record_id}: {message}")


class CalendarServiceError(TransportError):
    """The remote calendar rejected an event write."""

    def __init__(self, event_id: str, message: str, status_code: int | None = None):
        self.event_id = event_id
        self.status_code = status_code
        detail = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Could not update remote event {event_id}{detail}: {message}")


class MissingCredentialError(CalendarSyncError):
    """A strategy that writes to the remote calendar was invoked without a token."""

