"""
Unit tests for the field comparators.

Tests:
- Remote start splitting (timed, all-day, offset-aware)
- Date and time reported independently
- Trim-and-compare rule for description and location
"""

from datetime import date, time

import pytest

from calendar_sync.conflict.comparators import (
    ALL_DAY_DEFAULT_TIME,
    compare_date_time,
    compare_description,
    compare_location,
    remote_start_parts,
)
from calendar_sync.conflict.models import ConflictField

# =============================================================================
# TEST remote_start_parts
# =============================================================================


class TestRemoteStartParts:
    """Tests for splitting the remote start."""

    def test_timed_event(self, make_event):
        event = make_event(start="2024-03-01T15:30:00")

        assert remote_start_parts(event) == (date(2024, 3, 1), time(15, 30, 0))

    def test_all_day_event_defaults_to_nine(self, make_event):
        event = make_event(start="2024-03-01", all_day=True)

        assert ALL_DAY_DEFAULT_TIME == time(9, 0, 0)
        assert remote_start_parts(event) == (date(2024, 3, 1), time(9, 0, 0))

    def test_offset_converted_to_time_zone(self, make_event):
        event = make_event(start="2024-03-01T17:00:00Z")

        parts = remote_start_parts(event, time_zone="America/Sao_Paulo")

        assert parts == (date(2024, 3, 1), time(14, 0, 0))

    def test_offset_can_change_the_date(self, make_event):
        event = make_event(start="2024-03-02T01:00:00+00:00")

        parts = remote_start_parts(event, time_zone="America/Sao_Paulo")

        assert parts == (date(2024, 3, 1), time(22, 0, 0))

    def test_sub_second_precision_dropped(self, make_event):
        event = make_event(start="2024-03-01T14:00:00.750")

        assert remote_start_parts(event)[1] == time(14, 0, 0)


# =============================================================================
# TEST compare_date_time
# =============================================================================


class TestCompareDateTime:
    """Tests for the date/time comparator."""

    def test_identical(self, record, matching_event):
        assert compare_date_time(record, matching_event) == []

    def test_time_only_shift(self, record, moved_event):
        diffs = compare_date_time(record, moved_event)

        assert len(diffs) == 1
        assert diffs[0].field == ConflictField.TIME
        assert diffs[0].local_value == "14:00:00"
        assert diffs[0].remote_value == "15:00:00"

    def test_date_only_shift(self, record, make_event):
        diffs = compare_date_time(record, make_event(start="2024-03-04T14:00:00"))

        assert [d.field for d in diffs] == [ConflictField.DATE]
        assert diffs[0].local_value == "2024-03-01"
        assert diffs[0].remote_value == "2024-03-04"

    def test_date_and_time_reported_separately(self, record, make_event):
        diffs = compare_date_time(record, make_event(start="2024-03-04T08:00:00"))

        assert [d.field for d in diffs] == [ConflictField.DATE, ConflictField.TIME]

    def test_hour_minute_local_time_normalized(self, make_record, matching_event):
        record = make_record(at="14:00")

        assert compare_date_time(record, matching_event) == []

    def test_all_day_matches_nine_oclock(self, make_record, make_event):
        record = make_record(at="09:00:00")
        event = make_event(start="2024-03-01", all_day=True)

        assert compare_date_time(record, event) == []

    def test_all_day_differs_from_afternoon(self, record, make_event):
        diffs = compare_date_time(record, make_event(start="2024-03-01", all_day=True))

        assert len(diffs) == 1
        assert diffs[0].field == ConflictField.TIME
        assert diffs[0].remote_value == "09:00:00"

    def test_custom_default_time(self, make_record, make_event):
        record = make_record(at="08:00:00")
        event = make_event(start="2024-03-01", all_day=True)

        assert compare_date_time(record, event, default_time=time(8, 0)) == []


# =============================================================================
# TEST free-text comparators
# =============================================================================


class TestCompareDescription:
    """Tests for notes vs description."""

    def test_empty_vs_empty(self, record, matching_event):
        assert compare_description(record, matching_event) == []

    def test_none_counts_as_empty(self, record, make_event):
        assert compare_description(record, make_event(description=None)) == []

    def test_whitespace_trimmed(self, make_record, make_event):
        record = make_record(notes="  bring insurance card \n")
        event = make_event(description="bring insurance card")

        assert compare_description(record, event) == []

    def test_mismatch(self, make_record, matching_event):
        record = make_record(notes="bring insurance card")

        diffs = compare_description(record, matching_event)

        assert len(diffs) == 1
        assert diffs[0].field == ConflictField.DESCRIPTION
        assert diffs[0].local_value == "bring insurance card"
        assert diffs[0].remote_value == ""

    def test_case_sensitive(self, make_record, make_event):
        record = make_record(notes="Room 2")

        assert len(compare_description(record, make_event(description="room 2"))) == 1


class TestCompareLocation:
    """Tests for location comparison."""

    def test_none_vs_empty(self, make_record, make_event):
        record = make_record(location=None)

        assert compare_location(record, make_event(location="")) == []

    def test_mismatch(self, make_record, make_event):
        record = make_record(location="Office 12")

        diffs = compare_location(record, make_event(location="Online"))

        assert len(diffs) == 1
        assert diffs[0].field == ConflictField.LOCATION
        assert (diffs[0].local_value, diffs[0].remote_value) == ("Office 12", "Online")

    def test_independent_of_description(self, make_record, make_event):
        record = make_record(notes="Office 12", location="")
        event = make_event(description="", location="Office 12")

        assert compare_location(record, event)[0].local_value == ""
        assert compare_description(record, event)[0].local_value == "Office 12"


@pytest.mark.parametrize(
    "notes, description",
    [("", ""), ("a", "a"), (" a", "a "), ("\tnote\n", "note")],
)
def test_no_false_positive_after_trim(make_record, make_event, notes, description):
    """Identical content after trimming never yields a difference."""
    record = make_record(notes=notes, location=notes)
    event = make_event(description=description, location=description)

    assert compare_description(record, event) == []
    assert compare_location(record, event) == []
