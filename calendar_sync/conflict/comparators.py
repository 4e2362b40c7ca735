"""
Field comparators for mirrored session/event pairs.

Each comparator is a pure function taking the local record and the remote
event and returning zero or one Difference for its attribute class.
"""

import datetime as dt
from collections.abc import Callable
from zoneinfo import ZoneInfo

from calendar_sync.conflict.models import (
    ConflictField,
    Difference,
    LocalRecord,
    RemoteEvent,
    format_wall_time,
)

ALL_DAY_DEFAULT_TIME = dt.time(9, 0, 0)

Comparator = Callable[[LocalRecord, RemoteEvent], list[Difference]]


def remote_start_parts(
    event: RemoteEvent,
    default_time: dt.time = ALL_DAY_DEFAULT_TIME,
    time_zone: str | None = None,
) -> tuple[dt.date, dt.time]:
    """
    Split the remote event start into a calendar date and a wall-clock time.

    Timestamps carrying an offset are first converted to ``time_zone`` so the
    comparison happens in the practice's local time. All-day events have no
    time of day and take ``default_time``.
    """
    start = event.start

    if start.date_time is None:
        return start.date, default_time

    moment = start.date_time
    if moment.tzinfo is not None and time_zone:
        moment = moment.astimezone(ZoneInfo(time_zone))

    return moment.date(), moment.time().replace(microsecond=0, tzinfo=None)


def _clean(value: str | None) -> str:
    return (value or "").strip()


def compare_date_time(
    local: LocalRecord,
    remote: RemoteEvent,
    default_time: dt.time = ALL_DAY_DEFAULT_TIME,
    time_zone: str | None = None,
) -> list[Difference]:
    """Compare session date and start time.

    Date and time are reported independently, so a pair can yield both.
    """
    differences: list[Difference] = []

    remote_date, remote_time = remote_start_parts(remote, default_time, time_zone)
    local_time = local.time.replace(microsecond=0)

    if local.date != remote_date:
        differences.append(
            Difference(
                field=ConflictField.DATE,
                local_value=local.date.isoformat(),
                remote_value=remote_date.isoformat(),
            )
        )

    if local_time != remote_time:
        differences.append(
            Difference(
                field=ConflictField.TIME,
                local_value=format_wall_time(local_time),
                remote_value=format_wall_time(remote_time),
            )
        )

    return differences


def compare_description(local: LocalRecord, remote: RemoteEvent) -> list[Difference]:
    """Compare session notes with the event description."""
    local_text = _clean(local.notes)
    remote_text = _clean(remote.description)

    if local_text == remote_text:
        return []

    return [
        Difference(
            field=ConflictField.DESCRIPTION,
            local_value=local_text,
            remote_value=remote_text,
        )
    ]


def compare_location(local: LocalRecord, remote: RemoteEvent) -> list[Difference]:
    """Compare session location with the event location."""
    local_text = _clean(local.location)
    remote_text = _clean(remote.location)

    if local_text == remote_text:
        return []

    return [
        Difference(
            field=ConflictField.LOCATION,
            local_value=local_text,
            remote_value=remote_text,
        )
    ]


DEFAULT_COMPARATORS: tuple[Comparator, ...] = (
    compare_date_time,
    compare_description,
    compare_location,
)
