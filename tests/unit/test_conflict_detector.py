"""
Unit tests for the ConflictDetector.

Tests the detection pass including:
- Pairing by mirror link
- Deduplicated, batched alerting
- Best-effort alert delivery
- Wholesale registry replacement
"""

import pytest

from calendar_sync.adapters.memory import InMemoryAlertSink
from calendar_sync.conflict.classifier import ConflictClassifier
from calendar_sync.conflict.dedup import NotificationDeduplicator
from calendar_sync.conflict.detector import ConflictDetector
from calendar_sync.conflict.models import ConflictSeverity, NotifiedKey, SyncMode
from calendar_sync.conflict.registry import ConflictRegistry

# =============================================================================
# TEST FIXTURES
# =============================================================================


@pytest.fixture
def detector(alert_sink):
    """Detector with fresh state and in-memory alerts."""
    return ConflictDetector(
        classifier=ConflictClassifier(time_zone="America/Sao_Paulo"),
        deduplicator=NotificationDeduplicator(),
        registry=ConflictRegistry(),
        alert_sink=alert_sink,
        user_id="user-1",
    )


@pytest.fixture
def mixed_pairs(make_record, make_event):
    """Two high, one medium and one low conflict, plus a clean pair."""
    records = [
        make_record("s1", "e1"),
        make_record("s2", "e2"),
        make_record("s3", "e3", notes="x", location="y"),
        make_record("s4", "e4", notes="x"),
        make_record("s5", "e5"),
    ]
    events = [
        make_event("e1", start="2024-03-01T15:00:00"),
        make_event("e2", start="2024-03-02T14:00:00"),
        make_event("e3"),
        make_event("e4"),
        make_event("e5"),
    ]
    return records, events


# =============================================================================
# TEST detection
# =============================================================================


class TestDetection:
    """Tests for pairing and classification."""

    @pytest.mark.asyncio
    async def test_identical_pair_yields_nothing(self, detector, alert_sink, record, matching_event):
        conflicts = await detector.detect_all([record], [matching_event])

        assert conflicts == []
        assert alert_sink.alerts == []
        assert detector.registry.list() == []

    @pytest.mark.asyncio
    async def test_time_shift(self, detector, record, moved_event):
        conflicts = await detector.detect_all([record], [moved_event])

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.severity == ConflictSeverity.HIGH
        assert len(conflict.differences) == 1
        assert conflict.differences[0].field.value == "time"
        assert conflict.differences[0].local_value == "14:00:00"
        assert conflict.differences[0].remote_value == "15:00:00"

    @pytest.mark.asyncio
    async def test_dangling_link_skipped(self, detector, record, make_event):
        conflicts = await detector.detect_all([record], [make_event("other-event", start="2024-05-01T08:00:00")])

        assert conflicts == []

    @pytest.mark.asyncio
    async def test_non_mirrored_skipped(self, detector, make_record, moved_event):
        records = [make_record(mode=SyncMode.SENT), make_record(mode=SyncMode.IMPORTED)]

        assert await detector.detect_all(records, [moved_event]) == []

    @pytest.mark.asyncio
    async def test_results_in_record_order(self, detector, mixed_pairs):
        records, events = mixed_pairs

        conflicts = await detector.detect_all(records, list(reversed(events)))

        assert [c.local_record_id for c in conflicts] == ["s1", "s2", "s3", "s4"]
        assert [c.severity for c in conflicts] == [
            ConflictSeverity.HIGH,
            ConflictSeverity.HIGH,
            ConflictSeverity.MEDIUM,
            ConflictSeverity.LOW,
        ]

    @pytest.mark.asyncio
    async def test_registry_replaced_wholesale(self, detector, record, moved_event, matching_event):
        await detector.detect_all([record], [moved_event])
        assert len(detector.registry) == 1

        await detector.detect_all([record], [matching_event])

        assert detector.registry.list() == []


# =============================================================================
# TEST alerting
# =============================================================================


class TestAlerting:
    """Tests for deduplicated alerting."""

    @pytest.mark.asyncio
    async def test_single_conflict_alerts_once(self, detector, alert_sink, record, moved_event):
        await detector.detect_all([record], [moved_event])

        assert len(alert_sink.alerts) == 1
        user_id, title, body = alert_sink.alerts[0]
        assert user_id == "user-1"
        assert "Ana Souza" in title
        assert "time" in body

    @pytest.mark.asyncio
    async def test_repeated_detection_alerts_only_first_time(
        self, detector, alert_sink, record, moved_event
    ):
        first = await detector.detect_all([record], [moved_event])
        second = await detector.detect_all([record], [moved_event])

        assert [(c.local_record_id, c.severity, c.differences) for c in first] == [
            (c.local_record_id, c.severity, c.differences) for c in second
        ]
        assert len(alert_sink.alerts) == 1

    @pytest.mark.asyncio
    async def test_high_individual_rest_batched(self, detector, alert_sink, mixed_pairs):
        records, events = mixed_pairs

        report = await detector.detect_all_report(records, events)

        # Two urgent alerts, one summary for the medium + low pair
        assert len(alert_sink.alerts) == 3
        assert alert_sink.alerts[2][1] == "2 calendar conflicts detected"
        assert len(report.newly_alerted) == 4
        assert report.previously_known == []

    @pytest.mark.asyncio
    async def test_single_non_urgent_alerted_individually(
        self, detector, alert_sink, make_record, make_event
    ):
        records = [make_record("s1", "e1"), make_record("s2", "e2", notes="x")]
        events = [make_event("e1", start="2024-03-01T15:00:00"), make_event("e2")]

        await detector.detect_all(records, events)

        titles = [title for _, title, _ in alert_sink.alerts]
        assert len(titles) == 2
        assert titles[0].startswith("Schedule conflict")
        assert titles[1].startswith("Calendar conflict")

    @pytest.mark.asyncio
    async def test_known_and_new_partitioned(self, detector, alert_sink, mixed_pairs, make_record, make_event):
        records, events = mixed_pairs
        await detector.detect_all(records, events)
        alert_sink.alerts.clear()

        records.append(make_record("s6", "e6"))
        events.append(make_event("e6", start="2024-03-09T10:00:00"))
        report = await detector.detect_all_report(records, events)

        assert len(report.previously_known) == 4
        assert len(report.newly_alerted) == 1
        assert len(alert_sink.alerts) == 1

    @pytest.mark.asyncio
    async def test_severity_change_alerts_again(self, detector, alert_sink, make_record, make_event):
        record = make_record(notes="bring card")
        await detector.detect_all([record], [make_event()])

        await detector.detect_all([record], [make_event(start="2024-03-01T16:00:00")])

        assert len(alert_sink.alerts) == 2
        assert detector.deduplicator.has(NotifiedKey("session-1", ConflictSeverity.LOW))
        assert detector.deduplicator.has(NotifiedKey("session-1", ConflictSeverity.HIGH))

    @pytest.mark.asyncio
    async def test_alert_failure_does_not_block_detection(self, detector, alert_sink, record, moved_event):
        alert_sink.fail_with = "notifications table unavailable"

        report = await detector.detect_all_report([record], [moved_event])

        assert report.total == 1
        assert report.alerts_failed == 1
        assert report.newly_alerted == []
        assert report.undelivered == [report.conflicts[0].id]
        assert len(detector.registry) == 1
        # Best-effort: the key is kept so the failure is not retried every pass
        assert detector.deduplicator.has(report.conflicts[0].notified_key)

    @pytest.mark.asyncio
    async def test_alert_exception_type_irrelevant(self, detector, record, moved_event):
        class ExplodingSink(InMemoryAlertSink):
            async def create_alert(self, user_id, title, body):
                raise ConnectionError("socket closed")

        detector.alert_sink = ExplodingSink()

        conflicts = await detector.detect_all([record], [moved_event])

        assert len(conflicts) == 1
