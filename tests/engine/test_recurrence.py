"""Unit tests for recurrence pattern validation and descriptor encoding."""

from datetime import datetime, timedelta, timezone

import pytest

from appointments.exceptions import InvalidPatternError
from appointments.recurrence import (
    Frequency,
    RecurrencePattern,
    RecurringPatternInput,
    validate_pattern,
)
from tests.fixtures.appointments import ANCHOR_START, create_pattern


class TestValidatePattern:
    """Tests for turning raw patterns into canonical ones."""

    def test_minimal_pattern_gets_defaults(self):
        """Verify a frequency-only pattern validates with interval 1 and no filters."""
        pattern = validate_pattern({"frequency": "DAILY"})

        assert pattern.frequency == Frequency.DAILY
        assert pattern.interval == 1
        assert pattern.byweekday == ()
        assert pattern.bymonthday == ()
        assert pattern.bymonth == ()
        assert pattern.count is None
        assert pattern.until is None

    def test_frequency_is_case_insensitive(self):
        """Verify lowercase frequency names are accepted."""
        assert validate_pattern({"frequency": "weekly"}).frequency == Frequency.WEEKLY

    def test_accepts_input_model(self):
        """Verify a RecurringPatternInput validates like the equivalent dict."""
        raw = RecurringPatternInput(frequency="MONTHLY", interval=2, bymonthday=[15])
        assert validate_pattern(raw) == validate_pattern(
            {"frequency": "MONTHLY", "interval": 2, "bymonthday": [15]}
        )

    def test_accepts_canonical_pattern(self):
        """Verify validating an already canonical pattern is a no-op."""
        pattern = create_pattern(byweekday=[1, 3], count=10)
        assert validate_pattern(pattern) == pattern

    def test_filters_are_sorted_and_deduplicated(self):
        """Verify filter lists become sorted tuples without duplicates."""
        pattern = validate_pattern(
            {"frequency": "WEEKLY", "byweekday": [5, 1, 5, 3]}
        )
        assert pattern.byweekday == (1, 3, 5)

    def test_weekday_codes_and_names_map_to_sunday_based_indices(self):
        """Verify weekday codes and names translate with Sunday as 0."""
        pattern = validate_pattern(
            {"frequency": "WEEKLY", "byweekday": ["SU", "mo", "Friday"]}
        )
        assert pattern.byweekday == (0, 1, 5)

    @pytest.mark.parametrize(
        "raw,field",
        [
            ({"frequency": "HOURLY"}, "frequency"),
            ({}, "frequency"),
            ({"frequency": "DAILY", "interval": 0}, "interval"),
            ({"frequency": "DAILY", "interval": 366}, "interval"),
            ({"frequency": "DAILY", "count": 0}, "count"),
            ({"frequency": "DAILY", "count": 366}, "count"),
            ({"frequency": "WEEKLY", "byweekday": [7]}, "byweekday"),
            ({"frequency": "WEEKLY", "byweekday": ["XX"]}, "byweekday"),
            ({"frequency": "MONTHLY", "bymonthday": [0]}, "bymonthday"),
            ({"frequency": "MONTHLY", "bymonthday": [32]}, "bymonthday"),
            ({"frequency": "YEARLY", "bymonth": [13]}, "bymonth"),
        ],
    )
    def test_rejects_out_of_range_values(self, raw, field):
        """Verify structurally invalid patterns raise InvalidPatternError naming the field."""
        with pytest.raises(InvalidPatternError) as exc_info:
            validate_pattern(raw)

        assert exc_info.value.field is not None
        assert exc_info.value.field.startswith(field)

    def test_invalid_pattern_error_is_a_value_error(self):
        """Verify InvalidPatternError can be caught as ValueError."""
        with pytest.raises(ValueError):
            validate_pattern({"frequency": "NEVER"})

    def test_rejects_until_before_anchor(self):
        """Verify an until earlier than the anchor start is rejected."""
        with pytest.raises(InvalidPatternError) as exc_info:
            validate_pattern(
                {"frequency": "DAILY", "until": ANCHOR_START - timedelta(days=1)},
                anchor_start=ANCHOR_START,
            )

        assert exc_info.value.field == "until"

    def test_until_equal_to_anchor_is_allowed(self):
        """Verify until may coincide with the anchor start."""
        pattern = validate_pattern(
            {"frequency": "DAILY", "until": ANCHOR_START}, anchor_start=ANCHOR_START
        )
        assert pattern.until == ANCHOR_START

    def test_naive_until_takes_anchor_timezone(self):
        """Verify a naive until is aligned to an aware anchor."""
        pattern = validate_pattern(
            {"frequency": "DAILY", "until": "2024-01-05T10:00:00"},
            anchor_start=ANCHOR_START,
        )
        assert pattern.until == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)


class TestRecurrencePatternMatching:
    """Tests for candidate filtering."""

    def test_no_filters_match_everything(self):
        """Verify a pattern without filters accepts any candidate."""
        pattern = create_pattern("DAILY")
        assert pattern.matches(datetime(2024, 2, 29, 9, 0))

    def test_weekday_filter_uses_sunday_zero(self):
        """Verify weekday 1 is Monday and weekday 0 is Sunday."""
        pattern = create_pattern(byweekday=[1])

        assert pattern.matches(datetime(2024, 1, 8, 10, 0))  # Monday
        assert not pattern.matches(datetime(2024, 1, 7, 10, 0))  # Sunday

    def test_values_within_a_filter_are_alternatives(self):
        """Verify any listed weekday is accepted."""
        pattern = create_pattern(byweekday=[0, 6])

        assert pattern.matches(datetime(2024, 1, 6))  # Saturday
        assert pattern.matches(datetime(2024, 1, 7))  # Sunday
        assert not pattern.matches(datetime(2024, 1, 8))

    def test_filters_combine_with_and(self):
        """Verify a candidate must satisfy every non-empty filter."""
        pattern = create_pattern("MONTHLY", bymonthday=[15], bymonth=[3])

        assert pattern.matches(datetime(2024, 3, 15))
        assert not pattern.matches(datetime(2024, 4, 15))
        assert not pattern.matches(datetime(2024, 3, 16))


class TestDescriptor:
    """Tests for the canonical descriptor string."""

    def test_minimal_descriptor(self):
        """Verify the descriptor always carries frequency and interval."""
        assert create_pattern("DAILY").to_descriptor() == "FREQ=DAILY;INTERVAL=1"

    def test_full_descriptor(self):
        """Verify every set component appears in canonical order."""
        pattern = create_pattern(
            "WEEKLY",
            interval=2,
            byweekday=["WE", "MO"],
            count=10,
            until=datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc),
        )

        assert pattern.to_descriptor() == (
            "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=10;UNTIL=20240630T235959Z"
        )

    def test_equal_patterns_share_a_descriptor(self):
        """Verify input order does not affect the descriptor."""
        first = create_pattern("MONTHLY", bymonthday=[20, 5], bymonth=[12, 1])
        second = create_pattern("MONTHLY", bymonthday=[5, 20, 5], bymonth=[1, 12])

        assert first.to_descriptor() == second.to_descriptor()

    def test_until_is_encoded_in_utc(self):
        """Verify an aware until in another timezone is written as UTC."""
        plus_two = timezone(timedelta(hours=2))
        pattern = validate_pattern(
            {"frequency": "DAILY", "until": datetime(2024, 1, 10, 12, 0, tzinfo=plus_two)}
        )
        assert pattern.to_descriptor().endswith("UNTIL=20240110T100000Z")

    def test_parse_descriptor(self):
        """Verify a stored descriptor parses back into the same pattern."""
        pattern = create_pattern(
            "YEARLY",
            interval=1,
            bymonth=[2],
            bymonthday=[29],
            until=datetime(2040, 1, 1, tzinfo=timezone.utc),
        )

        assert RecurrencePattern.from_descriptor(pattern.to_descriptor()) == pattern

    @pytest.mark.parametrize(
        "descriptor",
        [
            "FREQ=WEEKLY;FOO=BAR",
            "FREQ=WEEKLY;INTERVAL",
            "FREQ=WEEKLY;INTERVAL=two",
            "FREQ=WEEKLY;UNTIL=tomorrow",
            "INTERVAL=1",
        ],
    )
    def test_parse_rejects_malformed_descriptors(self, descriptor):
        """Verify malformed descriptors raise InvalidPatternError."""
        with pytest.raises(InvalidPatternError):
            RecurrencePattern.from_descriptor(descriptor)
