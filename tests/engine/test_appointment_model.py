"""Unit tests for the appointment record models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from appointments.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    AppointmentUpdate,
    match_awareness,
)
from tests.fixtures.appointments import ANCHOR_START, create_appointment, create_draft


class TestAppointmentDraft:
    """Tests for caller-supplied creation fields."""

    def test_defaults(self):
        """Verify type defaults to Meeting."""
        assert create_draft().type == AppointmentType.MEETING

    def test_end_must_follow_start(self):
        """Verify an end time at or before the start is rejected."""
        with pytest.raises(ValidationError):
            create_draft(end_time=ANCHOR_START)

    @pytest.mark.parametrize("title", ["", "x" * 256])
    def test_title_length(self, title):
        """Verify empty and overlong titles are rejected."""
        with pytest.raises(ValidationError):
            create_draft(title=title)

    def test_type_values(self):
        """Verify appointment types use their display names."""
        assert create_draft(type="Showing").type == AppointmentType.SHOWING


class TestAppointment:
    """Tests for persisted appointment records."""

    def test_from_draft(self):
        """Verify a root built from a draft starts scheduled with a fresh id."""
        draft = create_draft(location="Office")

        record = Appointment.from_draft(draft, recurrence_rule="FREQ=DAILY;INTERVAL=1")

        assert record.id
        assert record.location == "Office"
        assert record.status == AppointmentStatus.SCHEDULED
        assert record.recurrence_rule == "FREQ=DAILY;INTERVAL=1"
        assert not record.is_recurring
        assert record.is_root

    def test_root_and_child_properties(self):
        """Verify root_id points at the series root for both shapes."""
        root = create_appointment()
        child = create_appointment(parent_appointment_id=root.id)

        assert root.root_id == root.id
        assert child.root_id == root.id
        assert child.is_child and not child.is_root

    def test_serializes_datetimes(self):
        """Verify datetimes dump as ISO strings."""
        record = create_appointment(recurrence_end_date=ANCHOR_START + timedelta(days=7))

        data = record.model_dump()

        assert data["start_time"] == ANCHOR_START.isoformat()
        assert data["recurrence_end_date"] == (ANCHOR_START + timedelta(days=7)).isoformat()


class TestAppointmentUpdate:
    """Tests for update field changes."""

    def test_changes_only_set_fields(self):
        """Verify changes() contains only explicitly set fields."""
        update = AppointmentUpdate(title="New", location=None)

        assert update.changes() == {"title": "New", "location": None}

    def test_rejects_unknown_fields(self):
        """Verify linkage fields cannot be updated."""
        with pytest.raises(ValidationError):
            AppointmentUpdate(is_recurring=False)

    def test_rejects_inverted_times(self):
        """Verify an update setting both times must keep end after start."""
        with pytest.raises(ValidationError):
            AppointmentUpdate(start_time=ANCHOR_START, end_time=ANCHOR_START)

    @pytest.mark.parametrize("field", ["title", "type", "status", "start_time", "end_time"])
    def test_rejects_null_for_required_fields(self, field):
        """Verify required appointment fields cannot be cleared with null."""
        with pytest.raises(ValidationError):
            AppointmentUpdate.model_validate({field: None})

    @pytest.mark.parametrize("field", ["description", "location", "client_id"])
    def test_allows_null_for_optional_fields(self, field):
        """Verify optional fields can be cleared with null."""
        assert AppointmentUpdate.model_validate({field: None}).changes() == {field: None}

    def test_naive_end_takes_start_timezone(self):
        """Verify mixed timezone awareness is aligned instead of failing."""
        update = AppointmentUpdate(
            start_time=ANCHOR_START,
            end_time=ANCHOR_START.replace(tzinfo=None) + timedelta(hours=1),
        )

        assert update.end_time == ANCHOR_START + timedelta(hours=1)

class TestMatchAwareness:
    """Tests for aligning datetimes before comparison."""

    def test_naive_value_takes_reference_timezone(self):
        """Verify a naive value is read in the reference timezone."""
        naive = ANCHOR_START.replace(tzinfo=None)
        assert match_awareness(naive, ANCHOR_START) == ANCHOR_START

    def test_aware_value_becomes_naive_utc(self):
        """Verify an aware value is converted to UTC for a naive reference."""
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 1, 12, 0, tzinfo=plus_two)

        assert match_awareness(value, datetime(2024, 1, 1)) == datetime(2024, 1, 1, 10, 0)

    def test_draft_with_mixed_awareness(self):
        """Verify a draft with a naive end and aware start validates."""
        draft = create_draft(end_time=ANCHOR_START.replace(tzinfo=None) + timedelta(hours=2))

        assert draft.end_time == ANCHOR_START + timedelta(hours=2)
