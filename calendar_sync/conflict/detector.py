"""
Conflict Detection for mirrored calendar sessions.

Pairs every mirrored platform session with its remote event, classifies
each pair, alerts the user about conflicts they have not seen yet and
publishes the full result to the registry.
"""

from collections.abc import Iterable

from loguru import logger

from calendar_sync.conflict.classifier import ConflictClassifier
from calendar_sync.conflict.dedup import NotificationDeduplicator
from calendar_sync.conflict.models import (
    Conflict,
    ConflictSeverity,
    DetectionReport,
    LocalRecord,
    RemoteEvent,
)
from calendar_sync.conflict.registry import ConflictRegistry
from calendar_sync.ports import AlertSink


def _describe(conflict: Conflict, default_client_name: str) -> tuple[str, str]:
    record = conflict.local_record
    client = record.client_name or default_client_name
    fields = ", ".join(f.value for f in conflict.fields)

    if conflict.severity == ConflictSeverity.HIGH:
        title = f"Schedule conflict: {client}"
    else:
        title = f"Calendar conflict: {client}"

    body = (
        f"Session on {record.date.isoformat()} at {record.time_str} "
        f"differs from the calendar event ({fields})."
    )
    return title, body


def _describe_batch(conflicts: list[Conflict]) -> tuple[str, str]:
    medium = sum(1 for c in conflicts if c.severity == ConflictSeverity.MEDIUM)
    low = len(conflicts) - medium
    title = f"{len(conflicts)} calendar conflicts detected"
    body = (
        f"{medium} medium and {low} low priority conflict(s). "
        "Review them to keep your calendar in sync."
    )
    return title, body


class ConflictDetector:
    """
    Runs detection passes and drives deduplicated alerting.

    Usage:
        detector = ConflictDetector(classifier, dedup, registry, alerts, user_id)
        conflicts = await detector.detect_all(records, events)

    Passes process records sequentially and must not overlap with each
    other or with resolutions on the same registry.
    """

    def __init__(
        self,
        classifier: ConflictClassifier,
        deduplicator: NotificationDeduplicator,
        registry: ConflictRegistry,
        alert_sink: AlertSink,
        user_id: str,
        default_client_name: str = "Cliente",
    ):
        self.classifier = classifier
        self.deduplicator = deduplicator
        self.registry = registry
        self.alert_sink = alert_sink
        self.user_id = user_id
        self.default_client_name = default_client_name

    async def detect_all(
        self,
        local_records: Iterable[LocalRecord],
        remote_events: Iterable[RemoteEvent],
    ) -> list[Conflict]:
        """
        Detect every conflict between mirrored sessions and their events.

        Args:
            local_records: Current platform sessions
            remote_events: Current remote events

        Returns:
            All conflicts found in this pass, alerted or not
        """
        report = await self.detect_all_report(local_records, remote_events)
        return report.conflicts

    async def detect_all_report(
        self,
        local_records: Iterable[LocalRecord],
        remote_events: Iterable[RemoteEvent],
    ) -> DetectionReport:
        """Same as detect_all but also reports which conflicts were alerted."""
        events_by_id = {event.id: event for event in remote_events}
        report = DetectionReport()

        for record in local_records:
            if not record.is_mirrored:
                continue

            event = events_by_id.get(record.mirror_event_id)
            if event is None:
                logger.debug(
                    f"Record {record.id} links to missing event {record.mirror_event_id}"
                )
                continue

            conflict = self.classifier.classify(record, event)
            if conflict is not None:
                report.conflicts.append(conflict)

        new_conflicts = []
        for conflict in report.conflicts:
            if self.deduplicator.has(conflict.notified_key):
                report.previously_known.append(conflict.id)
            else:
                new_conflicts.append(conflict)

        await self._alert(new_conflicts, report)

        self.registry.replace(report.conflicts)

        logger.info(
            f"Detection complete: {report.total} conflicts "
            f"({len(report.newly_alerted)} new, {len(report.previously_known)} known)"
        )

        return report

    async def _alert(self, conflicts: list[Conflict], report: DetectionReport) -> None:
        """Alert urgent conflicts one by one and batch the rest."""
        urgent = [c for c in conflicts if c.severity == ConflictSeverity.HIGH]
        remaining = [c for c in conflicts if c.severity != ConflictSeverity.HIGH]

        for conflict in urgent:
            title, body = _describe(conflict, self.default_client_name)
            await self._send(title, body, [conflict], report)

        if len(remaining) == 1:
            title, body = _describe(remaining[0], self.default_client_name)
            await self._send(title, body, remaining, report)
        elif len(remaining) > 1:
            title, body = _describe_batch(remaining)
            await self._send(title, body, remaining, report)

    async def _send(
        self,
        title: str,
        body: str,
        conflicts: list[Conflict],
        report: DetectionReport,
    ) -> None:
        """Best-effort alert; failures are logged and never propagate.

        Keys are recorded either way. Only delivered conflicts count as
        newly alerted.
        """
        delivered = True
        try:
            await self.alert_sink.create_alert(self.user_id, title, body)
        except Exception as e:
            delivered = False
            report.alerts_failed += 1
            logger.warning(f"Alert delivery failed for {len(conflicts)} conflict(s): {e}")

        for conflict in conflicts:
            self.deduplicator.add(conflict.notified_key)
            if delivered:
                report.newly_alerted.append(conflict.id)
            else:
                report.undelivered.append(conflict.id)
