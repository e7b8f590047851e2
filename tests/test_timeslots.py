"""Slot keys, overlap testing and input validation."""

from datetime import date, time

import pytest

from eventsync.errors import ValidationError
from eventsync.timeslots import TimeSlot, overlaps, slot_key
from eventsync.validation import build_requirements, sanitize_input, validate_event_data

from conftest import event_fields


class TestSlotKey:

    @pytest.mark.parametrize("start, duration, expected", [
        ("14:00", 2, "14:00-16:00"),
        ("09:30", 1.5, "09:30-11:00"),
        ("10:00", 0.75, "10:00-10:45"),
        ("08:15", 8, "08:15-16:15"),
    ])
    def test_end_time_is_start_plus_duration(self, start, duration, expected):
        assert slot_key(start, duration) == expected

    @pytest.mark.parametrize("duration", [0, -1, -0.5])
    def test_non_positive_duration_is_rejected(self, duration):
        with pytest.raises(ValidationError) as exc_info:
            slot_key("10:00", duration)
        assert exc_info.value.field == "duration_hours"

    def test_slot_crossing_midnight_is_rejected(self):
        with pytest.raises(ValidationError):
            slot_key("23:00", 2)

    def test_malformed_start_is_rejected(self):
        with pytest.raises(ValidationError):
            slot_key("9am", 1)


class TestOverlap:

    def slot(self, start, end, day="2026-01-05"):
        return TimeSlot.from_key(day, f"{start}-{end}")

    def test_partial_overlap(self):
        assert overlaps(self.slot("09:00", "11:00"), self.slot("10:00", "12:00"))

    def test_touching_boundary_is_not_overlap(self):
        assert not overlaps(self.slot("09:00", "11:00"), self.slot("11:00", "13:00"))

    def test_containment_overlaps_both_ways(self):
        outer, inner = self.slot("08:00", "18:00"), self.slot("12:00", "13:00")
        assert outer.overlaps(inner) and inner.overlaps(outer)

    def test_different_dates_never_overlap(self):
        assert not overlaps(self.slot("09:00", "11:00"), self.slot("09:00", "11:00", day="2026-01-06"))

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            TimeSlot(date(2026, 1, 5), time(12, 0), time(12, 0))

    def test_key_round_trips(self):
        slot = TimeSlot.from_start("2026-01-05", "14:00", 2)
        assert slot.key == "14:00-16:00"
        assert slot.to_dict() == {"date": "2026-01-05", "start_time": "14:00", "end_time": "16:00"}


class TestRequirementValidation:

    def test_valid_fields_build_requirements(self):
        requirements = build_requirements(event_fields())
        assert requirements.date == date(2026, 1, 5)
        assert requirements.start_time == time(14, 0)
        assert requirements.slot.key == "14:00-16:00"
        assert requirements.facilities_required == ["Projector"]

    @pytest.mark.parametrize("field, value", [
        ("date", "05/01/2026"),
        ("date", "2026-02-30"),
        ("start_time", "25:00"),
        ("duration_hours", 0),
        ("duration_hours", 9),
        ("seats_required", 0),
        ("seats_required", 1001),
        ("facilities_required", "Projector"),
    ])
    def test_bad_field_is_named(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            build_requirements(event_fields(**{field: value}))
        assert exc_info.value.field == field

    def test_missing_field_is_named(self):
        fields = event_fields()
        del fields["seats_required"]
        with pytest.raises(ValidationError) as exc_info:
            build_requirements(fields)
        assert exc_info.value.field == "seats_required"

    def test_event_name_required_for_submission(self):
        with pytest.raises(ValidationError) as exc_info:
            build_requirements(event_fields(event_name="  "), require_event_name=True)
        assert exc_info.value.field == "event_name"

    def test_late_start_running_past_midnight_is_rejected(self):
        with pytest.raises(ValidationError):
            build_requirements(event_fields(start_time="22:30", duration_hours=2))

    def test_sanitize_strips_markup_and_caps_length(self):
        assert sanitize_input("  <b>Hackathon</b> ") == "bHackathon/b"
        assert len(sanitize_input("x" * 5000)) == 1000


class TestExtractedEventValidation:

    def test_well_formed_extraction_has_no_errors(self):
        data = {
            "eventName": "Placement Meeting",
            "date": "2026-01-21",
            "startTime": "09:00",
            "durationHours": 2,
            "seatsRequired": 10,
            "facilitiesRequired": ["Projector"],
        }
        assert validate_event_data(data) == []

    def test_every_problem_is_reported(self):
        errors = validate_event_data({"startTime": "9am", "durationHours": 12, "seatsRequired": 0})
        assert "Event name is required" in errors
        assert "Date is required" in errors
        assert "Start time must be in HH:MM format (24-hour)" in errors
        assert "Duration must be between 0.5 and 8 hours" in errors
        assert "Seats required must be between 1 and 1000" in errors
        assert "Facilities must be an array" in errors
