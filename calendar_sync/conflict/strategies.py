"""
Resolution Strategies for calendar conflicts.

Strategy pattern implementation: one class per way of closing a conflict.
Strategies mutate the local session, the remote event, or both, and
report the outcome in a ResolutionResult. They never raise for transport
failures and never retry.
"""

import datetime as dt
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any
from zoneinfo import ZoneInfo

from loguru import logger

from calendar_sync.conflict.comparators import remote_start_parts
from calendar_sync.conflict.models import (
    Conflict,
    MergedFields,
    ResolutionResult,
    ResolutionStatus,
    ResolutionStrategy,
)
from calendar_sync.core.config import Settings
from calendar_sync.core.errors import MissingCredentialError, TransportError
from calendar_sync.ports import CalendarService, RecordStore

Clock = Callable[[], dt.datetime]


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class EventBodyBuilder:
    """Builds the full remote event resource written by keep-local and merge."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build(
        self,
        date: dt.date,
        time: dt.time,
        description: str | None,
        location: str | None,
        client_name: str | None,
    ) -> dict[str, Any]:
        zone = self.settings.time_zone
        start = dt.datetime.combine(date, time).replace(tzinfo=ZoneInfo(zone))
        end = start + dt.timedelta(minutes=self.settings.session_duration_minutes)
        client = client_name or self.settings.default_client_name

        return {
            "summary": f"{self.settings.event_summary_prefix} - {client}",
            "description": description or "",
            "location": location or "",
            "start": {"dateTime": start.isoformat(), "timeZone": zone},
            "end": {"dateTime": end.isoformat(), "timeZone": zone},
        }


class BaseStrategy(ABC):
    """Base class for conflict resolution strategies."""

    strategy: ResolutionStrategy

    @abstractmethod
    async def resolve(
        self,
        conflict: Conflict,
        result: ResolutionResult,
        merged_fields: MergedFields | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        """
        Resolve the conflict.

        Args:
            conflict: Conflict to resolve
            result: Result in APPLYING state, filled in and returned
            merged_fields: User-chosen values (merge only)
            access_token: Remote calendar credential

        Returns:
            ResolutionResult indicating outcome
        """
        pass

    @staticmethod
    def _require_token(access_token: str | None) -> None:
        if not access_token:
            raise MissingCredentialError("Missing remote calendar access token")


class KeepLocalStrategy(BaseStrategy):
    """Overwrite the remote event with the platform's session."""

    strategy = ResolutionStrategy.KEEP_LOCAL

    def __init__(
        self,
        record_store: RecordStore,
        calendar: CalendarService,
        builder: EventBodyBuilder,
        clock: Clock = _utc_now,
    ):
        self.record_store = record_store
        self.calendar = calendar
        self.builder = builder
        self._clock = clock

    async def resolve(
        self,
        conflict: Conflict,
        result: ResolutionResult,
        merged_fields: MergedFields | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        self._require_token(access_token)

        record = conflict.local_record
        body = self.builder.build(
            record.date,
            record.time,
            record.notes,
            record.location,
            record.client_name,
        )

        try:
            await self.calendar.put_event(conflict.remote_event_id, access_token, body)
        except TransportError as e:
            logger.error(f"keep-local failed for {conflict.id}: {e}")
            return result.fail(str(e))

        result.remote_written = True
        result.actions_taken.append(f"Overwrote remote event {conflict.remote_event_id}")

        try:
            await self.record_store.update_record(record.id, {"last_synced_at": self._clock()})
            result.local_written = True
            result.actions_taken.append(f"Marked record {record.id} as synced")
        except TransportError as e:
            # The remote side already matches; only the sync marker is stale
            logger.warning(f"Could not stamp sync time on {record.id}: {e}")

        result.status = ResolutionStatus.RESOLVED
        return result


class KeepRemoteStrategy(BaseStrategy):
    """Overwrite the platform's session with the remote event."""

    strategy = ResolutionStrategy.KEEP_REMOTE

    def __init__(
        self,
        record_store: RecordStore,
        settings: Settings,
        clock: Clock = _utc_now,
    ):
        self.record_store = record_store
        self.settings = settings
        self._clock = clock

    async def resolve(
        self,
        conflict: Conflict,
        result: ResolutionResult,
        merged_fields: MergedFields | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        event = conflict.remote_event
        event_date, event_time = remote_start_parts(
            event,
            default_time=self.settings.default_all_day_time,
            time_zone=self.settings.time_zone,
        )

        fields = {
            "date": event_date,
            "time": event_time,
            "notes": event.description or "",
            "location": event.location or None,
            "last_synced_at": self._clock(),
        }

        try:
            await self.record_store.update_record(conflict.local_record_id, fields)
        except TransportError as e:
            logger.error(f"keep-remote failed for {conflict.id}: {e}")
            return result.fail(str(e))

        result.local_written = True
        result.actions_taken.append(
            f"Copied remote event {conflict.remote_event_id} into record {conflict.local_record_id}"
        )
        result.status = ResolutionStatus.RESOLVED
        return result


class MergeStrategy(BaseStrategy):
    """
    Write user-chosen values to both sides.

    Fields the user did not choose keep the local value. The local write
    happens first; if the remote write then fails the local change stays
    in place and the result is FAILED with ``local_written`` set, so the
    next detection pass surfaces the remaining divergence.
    """

    strategy = ResolutionStrategy.MERGE

    def __init__(
        self,
        record_store: RecordStore,
        calendar: CalendarService,
        builder: EventBodyBuilder,
        clock: Clock = _utc_now,
    ):
        self.record_store = record_store
        self.calendar = calendar
        self.builder = builder
        self._clock = clock

    async def resolve(
        self,
        conflict: Conflict,
        result: ResolutionResult,
        merged_fields: MergedFields | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        if merged_fields is None:
            return result.fail("Merge requires merged fields")

        self._require_token(access_token)

        record = conflict.local_record
        date = merged_fields.date or record.date
        time = merged_fields.time or record.time
        notes = merged_fields.description if merged_fields.description is not None else record.notes
        location = (
            merged_fields.location if merged_fields.location is not None else record.location
        )

        try:
            await self.record_store.update_record(
                record.id,
                {
                    "date": date,
                    "time": time,
                    "notes": notes,
                    "location": location,
                    "last_synced_at": self._clock(),
                },
            )
        except TransportError as e:
            logger.error(f"merge failed writing record {record.id}: {e}")
            return result.fail(str(e))

        result.local_written = True
        result.actions_taken.append(f"Wrote merged values to record {record.id}")

        body = self.builder.build(date, time, notes, location, record.client_name)

        try:
            await self.calendar.put_event(conflict.remote_event_id, access_token, body)
        except TransportError as e:
            logger.warning(
                f"merge for {conflict.id} left record {record.id} updated but remote event "
                f"{conflict.remote_event_id} unchanged: {e}"
            )
            return result.fail(str(e))

        result.remote_written = True
        result.actions_taken.append(f"Overwrote remote event {conflict.remote_event_id}")
        result.status = ResolutionStatus.RESOLVED
        return result


class DismissStrategy(BaseStrategy):
    """Close the conflict without touching either side."""

    strategy = ResolutionStrategy.DISMISS

    async def resolve(
        self,
        conflict: Conflict,
        result: ResolutionResult,
        merged_fields: MergedFields | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        result.actions_taken.append("Dismissed without changes")
        result.status = ResolutionStatus.RESOLVED
        return result
