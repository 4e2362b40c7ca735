"""
Conflict classification.

Runs the field comparators over a mirrored pair and folds the resulting
differences into a single Conflict with a severity tier.
"""

import datetime as dt
from collections.abc import Callable, Sequence
from functools import partial

from loguru import logger

from calendar_sync.conflict.comparators import (
    ALL_DAY_DEFAULT_TIME,
    DEFAULT_COMPARATORS,
    Comparator,
    compare_date_time,
)
from calendar_sync.conflict.models import (
    TEMPORAL_FIELDS,
    Conflict,
    ConflictSeverity,
    Difference,
    LocalRecord,
    RemoteEvent,
)

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def classify_severity(differences: Sequence[Difference]) -> ConflictSeverity:
    """
    Derive the severity tier of a non-empty difference set.

    Any date or time difference is HIGH regardless of what accompanies it,
    otherwise more than one difference is MEDIUM and a single one is LOW.
    """
    if any(d.field in TEMPORAL_FIELDS for d in differences):
        return ConflictSeverity.HIGH
    if len(differences) > 1:
        return ConflictSeverity.MEDIUM
    return ConflictSeverity.LOW


class ConflictClassifier:
    """
    Builds Conflict records from mirrored pairs.

    Usage:
        classifier = ConflictClassifier(time_zone="America/Sao_Paulo")
        conflict = classifier.classify(record, event)

        if conflict is None:
            # Both sides agree
            pass
    """

    def __init__(
        self,
        default_time: dt.time = ALL_DAY_DEFAULT_TIME,
        time_zone: str | None = None,
        comparators: Sequence[Comparator] | None = None,
        clock: Clock = utc_now,
    ):
        self.default_time = default_time
        self.time_zone = time_zone
        self._clock = clock
        if comparators is None:
            comparators = [
                partial(compare_date_time, default_time=default_time, time_zone=time_zone)
                if comparator is compare_date_time
                else comparator
                for comparator in DEFAULT_COMPARATORS
            ]
        self._comparators: tuple[Comparator, ...] = tuple(comparators)

    def differences(self, local: LocalRecord, remote: RemoteEvent) -> list[Difference]:
        """Run every comparator and concatenate their output."""
        differences: list[Difference] = []
        for comparator in self._comparators:
            differences.extend(comparator(local, remote))
        return differences

    def classify(self, local: LocalRecord, remote: RemoteEvent) -> Conflict | None:
        """
        Classify a local record against its linked remote event.

        Args:
            local: Platform session
            remote: Remote event the session is mirrored to

        Returns:
            Conflict snapshotting both records, or None when the record is not
            mirrored or both sides agree
        """
        if not local.is_mirrored:
            return None

        differences = self.differences(local, remote)
        if not differences:
            return None

        detected_at = self._clock()
        severity = classify_severity(differences)

        conflict = Conflict(
            id=self._conflict_id(local, detected_at),
            local_record=local.model_copy(deep=True),
            remote_event=remote.model_copy(deep=True),
            differences=differences,
            severity=severity,
            detected_at=detected_at,
        )

        logger.debug(
            f"Conflict {conflict.id}: {severity.value} "
            f"({', '.join(f.value for f in conflict.fields)})"
        )

        return conflict

    @staticmethod
    def _conflict_id(local: LocalRecord, detected_at: dt.datetime) -> str:
        millis = int(detected_at.timestamp() * 1000)
        return f"conflict-{local.id}-{millis}"


def classify_conflict(local: LocalRecord, remote: RemoteEvent) -> Conflict | None:
    """Convenience function to classify a single pair with default settings.

    Args:
        local: Platform session.
        remote: Linked remote event.

    Returns:
        Conflict or None.
    """
    return ConflictClassifier().classify(local, remote)
