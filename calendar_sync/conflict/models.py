"""Data model for calendar conflict reconciliation.

Records on both sides of a mirror link are pydantic models so they can be
parsed from storage rows and Google Calendar API payloads. The engine's own
work items (differences, conflicts, results) are plain dataclasses.
"""

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# ENUMS
# =============================================================================


class SyncMode(str, Enum):
    """How a platform session is linked to the external calendar."""

    NONE = "none"
    LOCAL = "local"
    IMPORTED = "imported"
    MIRRORED = "mirrored"
    SENT = "sent"
    IGNORED = "ignored"
    CANCELLED = "cancelled"

    @classmethod
    def _missing_(cls, value: object) -> "SyncMode | None":
        # Values stored by the scheduling application
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
            return _STORED_SYNC_MODES.get(normalized)
        return None


_STORED_SYNC_MODES = {
    "importado": SyncMode.IMPORTED,
    "espelhado": SyncMode.MIRRORED,
    "enviado": SyncMode.SENT,
    "ignorado": SyncMode.IGNORED,
    "cancelado": SyncMode.CANCELLED,
}


class ConflictField(str, Enum):
    """Attribute class a Difference refers to."""

    DATE = "date"
    TIME = "time"
    DESCRIPTION = "description"
    LOCATION = "location"
    ATTENDEES = "attendees"  # Reserved, no comparator emits it yet


TEMPORAL_FIELDS = frozenset({ConflictField.DATE, ConflictField.TIME})


class ConflictSeverity(str, Enum):
    """Urgency tier of a conflict."""

    HIGH = "high"  # When the appointment happens differs
    MEDIUM = "medium"  # Several non-temporal fields differ
    LOW = "low"  # A single non-temporal field differs


class ResolutionStrategy(str, Enum):
    """Ways to close a conflict."""

    KEEP_LOCAL = "keep-local"
    KEEP_REMOTE = "keep-remote"
    MERGE = "merge"
    DISMISS = "dismiss"

    @classmethod
    def _missing_(cls, value: object) -> "ResolutionStrategy | None":
        if isinstance(value, str):
            normalized = value.lower().replace("_", "-")
            aliases = {
                "keep-platform": cls.KEEP_LOCAL,
                "keep-google": cls.KEEP_REMOTE,
            }
            if normalized in aliases:
                return aliases[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def requires_credential(self) -> bool:
        """Whether the strategy writes to the remote calendar."""
        return self in (ResolutionStrategy.KEEP_LOCAL, ResolutionStrategy.MERGE)


class ResolutionStatus(str, Enum):
    """Status of a resolution attempt."""

    PENDING = "pending"
    APPLYING = "applying"
    RESOLVED = "resolved"
    FAILED = "failed"


# =============================================================================
# HELPERS
# =============================================================================


def parse_wall_time(value: Any) -> dt.time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time with second precision."""
    if isinstance(value, dt.datetime):
        value = value.time()
    if isinstance(value, str):
        value = dt.time.fromisoformat(value.strip())
    if not isinstance(value, dt.time):
        raise ValueError(f"Invalid time of day: {value!r}")
    return value.replace(microsecond=0, tzinfo=None)


def format_wall_time(value: dt.time) -> str:
    """Format a time as ``HH:MM:SS``."""
    return value.strftime("%H:%M:%S")


# =============================================================================
# RECORDS
# =============================================================================


class LocalRecord(BaseModel):
    """The platform's view of a scheduled session.

    Example:
        >>> record = LocalRecord(
        ...     id="s-1",
        ...     mirror_event_id="evt-1",
        ...     mirror_mode=SyncMode.MIRRORED,
        ...     date="2024-03-01",
        ...     time="14:00",
        ... )
        >>> record.time_str
        '14:00:00'
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(..., min_length=1, description="Session identifier")
    mirror_event_id: str | None = Field(
        default=None,
        description="Identifier of the linked remote event",
    )
    mirror_mode: SyncMode = Field(
        default=SyncMode.NONE,
        description="Linkage mode with the remote calendar",
    )
    date: dt.date = Field(..., description="Calendar date of the session")
    time: dt.time = Field(..., description="Local wall-clock start time")
    notes: str = Field(default="", description="Free-text session notes")
    location: str | None = Field(default=None, description="Session location")
    client_name: str | None = Field(default=None, description="Client display name")
    last_synced_at: dt.datetime | None = Field(
        default=None,
        description="When the record was last reconciled with the remote event",
    )

    @field_validator("time", mode="before")
    @classmethod
    def normalize_time(cls, v: Any) -> dt.time:
        """Store times with second precision."""
        return parse_wall_time(v)

    @field_validator("mirror_mode", mode="before")
    @classmethod
    def parse_mirror_mode(cls, v: Any) -> Any:
        if v is None:
            return SyncMode.NONE
        if isinstance(v, str):
            return SyncMode(v)
        return v

    @field_validator("notes", mode="before")
    @classmethod
    def none_notes_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_mirrored(self) -> bool:
        """Eligible for conflict detection."""
        return self.mirror_mode == SyncMode.MIRRORED and bool(self.mirror_event_id)

    @property
    def time_str(self) -> str:
        return format_wall_time(self.time)

    @classmethod
    def from_session_row(cls, row: dict[str, Any]) -> "LocalRecord":
        """Build a record from a ``sessions`` table row.

        Accepts the column names used by the scheduling database
        (``data``, ``horario``, ``anotacoes``, ``google_*``) and the nested
        ``clients`` relation for the display name.
        """
        client = row.get("clients") or {}
        return cls(
            id=str(row["id"]),
            mirror_event_id=row.get("google_event_id"),
            mirror_mode=row.get("google_sync_type") or SyncMode.NONE,
            date=row["data"],
            time=row["horario"],
            notes=row.get("anotacoes"),
            location=row.get("google_location"),
            client_name=client.get("nome"),
            last_synced_at=row.get("google_last_synced"),
        )


class EventTime(BaseModel):
    """Start or end of a remote event: either a timestamp or an all-day date."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date_time: dt.datetime | None = Field(default=None, alias="dateTime")
    date: dt.date | None = Field(default=None)
    time_zone: str | None = Field(default=None, alias="timeZone")

    @model_validator(mode="after")
    def require_date_or_timestamp(self) -> "EventTime":
        if self.date_time is None and self.date is None:
            raise ValueError("Event time needs either dateTime or date")
        return self

    @property
    def is_all_day(self) -> bool:
        return self.date_time is None


class RemoteEvent(BaseModel):
    """The external calendar's view of an appointment.

    Parses the Google Calendar event resource directly:

        >>> event = RemoteEvent.model_validate(
        ...     {"id": "evt-1", "start": {"dateTime": "2024-03-01T14:00:00"}}
        ... )
        >>> event.start.is_all_day
        False
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Remote event identifier")
    summary: str | None = Field(default=None, description="Event title")
    start: EventTime = Field(..., description="Event start")
    end: EventTime | None = Field(default=None, description="Event end")
    description: str | None = Field(default=None, description="Event description")
    location: str | None = Field(default=None, description="Event location")
    updated: dt.datetime | None = Field(default=None, description="Last remote edit")


class MergedFields(BaseModel):
    """Explicit values chosen by the user for a merge resolution."""

    model_config = ConfigDict(extra="forbid")

    date: dt.date | None = None
    time: dt.time | None = None
    description: str | None = None
    location: str | None = None

    @field_validator("time", mode="before")
    @classmethod
    def normalize_time(cls, v: Any) -> dt.time | None:
        if v is None:
            return None
        return parse_wall_time(v)


# =============================================================================
# CONFLICTS
# =============================================================================


class NotifiedKey(NamedTuple):
    """Identity under which an alert for a conflict is remembered."""

    local_record_id: str
    severity: ConflictSeverity


@dataclass(frozen=True)
class Difference:
    """One field-level disagreement between the two sides."""

    field: ConflictField
    local_value: str
    remote_value: str

    def to_dict(self) -> dict:
        return {
            "field": self.field.value,
            "local_value": self.local_value,
            "remote_value": self.remote_value,
        }


@dataclass
class Conflict:
    """A detected, user-actionable divergence between a mirrored pair."""

    id: str
    local_record: LocalRecord
    remote_event: RemoteEvent
    differences: list[Difference]
    severity: ConflictSeverity
    detected_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    def __post_init__(self):
        if not self.differences:
            raise ValueError(f"Conflict {self.id} has no differences")

    @property
    def local_record_id(self) -> str:
        return self.local_record.id

    @property
    def remote_event_id(self) -> str:
        return self.remote_event.id

    @property
    def notified_key(self) -> NotifiedKey:
        return NotifiedKey(self.local_record.id, self.severity)

    @property
    def fields(self) -> list[ConflictField]:
        """Fields that differ, in detection order."""
        return [d.field for d in self.differences]

    def to_dict(self) -> dict:
        """Convert conflict to dictionary."""
        return {
            "id": self.id,
            "local_record_id": self.local_record_id,
            "remote_event_id": self.remote_event_id,
            "severity": self.severity.value,
            "detected_at": self.detected_at.isoformat(),
            "differences": [d.to_dict() for d in self.differences],
            "local_record": self.local_record.model_dump(mode="json"),
            "remote_event": self.remote_event.model_dump(mode="json", by_alias=True),
        }


@dataclass
class ConflictStats:
    """Open conflict counts by severity."""

    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass
class DetectionReport:
    """Outcome of one detection pass."""

    conflicts: list[Conflict] = field(default_factory=list)
    newly_alerted: list[str] = field(default_factory=list)
    previously_known: list[str] = field(default_factory=list)
    undelivered: list[str] = field(default_factory=list)
    alerts_failed: int = 0

    @property
    def total(self) -> int:
        return len(self.conflicts)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "newly_alerted": self.newly_alerted,
            "previously_known": self.previously_known,
            "undelivered": self.undelivered,
            "alerts_failed": self.alerts_failed,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


@dataclass
class ResolutionResult:
    """Result of a resolution attempt."""

    conflict_id: str
    strategy: ResolutionStrategy
    status: ResolutionStatus = ResolutionStatus.PENDING
    actions_taken: list[str] = field(default_factory=list)
    error_message: str | None = None
    local_written: bool = False
    remote_written: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    def fail(self, message: str) -> "ResolutionResult":
        self.status = ResolutionStatus.FAILED
        self.error_message = message
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "conflict_id": self.conflict_id,
            "strategy": self.strategy.value,
            "status": self.status.value,
            "actions_taken": self.actions_taken,
            "error_message": self.error_message,
            "local_written": self.local_written,
            "remote_written": self.remote_written,
        }
