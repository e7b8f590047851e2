# validation.py
"""Checks applied to organiser input before it reaches the matcher or workflow."""
import re
from typing import Any, Dict, List, Optional

from eventsync.data_models import Requirements
from eventsync.errors import ValidationError
from eventsync.timeslots import TIME_RE, TimeSlot, parse_date, parse_time

MIN_DURATION_HOURS = 0.5
MAX_DURATION_HOURS = 8
MIN_SEATS = 1
MAX_SEATS = 1000
MAX_TEXT_LENGTH = 1000


def sanitize_input(value: Any) -> Any:
    """Strip angle brackets, trim, and cap free text."""
    if not isinstance(value, str):
        return value
    return re.sub(r"[<>]", "", value).strip()[:MAX_TEXT_LENGTH]


def _require(data: Dict[str, Any], name: str):
    value = data.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} is required", field=name)
    return value


def _number(data: Dict[str, Any], name: str, low: float, high: float, integer: bool = False):
    value = _require(data, name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", field=name)
    if integer and int(value) != value:
        raise ValidationError(f"{name} must be a whole number", field=name)
    if value < low or value > high:
        raise ValidationError(f"{name} must be between {low:g} and {high:g}", field=name)
    return int(value) if integer else float(value)


def _facilities(data: Dict[str, Any]) -> List[str]:
    value = data.get("facilities_required")
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError("facilities_required must be a list of strings", field="facilities_required")
    return [sanitize_input(item) for item in value if item.strip()]


def build_requirements(data: Dict[str, Any], require_event_name: bool = False) -> Requirements:
    """Turn a raw request body into Requirements, raising on the first bad field."""
    event_name: Optional[str] = sanitize_input(data.get("event_name")) or None
    if require_event_name and not event_name:
        raise ValidationError("event_name is required", field="event_name")

    day = parse_date(_require(data, "date"))
    start = parse_time(_require(data, "start_time"))
    duration = _number(data, "duration_hours", MIN_DURATION_HOURS, MAX_DURATION_HOURS)
    seats = _number(data, "seats_required", MIN_SEATS, MAX_SEATS, integer=True)

    requirements = Requirements(
        date=day,
        start_time=start,
        duration_hours=duration,
        seats_required=seats,
        facilities_required=_facilities(data),
        event_name=event_name,
        description=sanitize_input(data.get("description")) or None,
    )
    # cross-midnight windows fail here
    TimeSlot.from_start(requirements.date, requirements.start_time, requirements.duration_hours)
    return requirements


def validate_event_data(data: Dict[str, Any]) -> List[str]:
    """Collect every problem with an AI-extracted event instead of stopping at the first."""
    errors = []

    if not str(data.get("eventName") or "").strip():
        errors.append("Event name is required")

    raw_date = data.get("date")
    if not raw_date:
        errors.append("Date is required")
    else:
        try:
            parse_date(raw_date)
        except ValidationError as exc:
            errors.append(exc.message)

    start = data.get("startTime")
    if not start:
        errors.append("Start time is required")
    elif not isinstance(start, str) or not TIME_RE.match(start):
        errors.append("Start time must be in HH:MM format (24-hour)")

    duration = data.get("durationHours")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) \
            or duration < MIN_DURATION_HOURS or duration > MAX_DURATION_HOURS:
        errors.append("Duration must be between 0.5 and 8 hours")

    seats = data.get("seatsRequired")
    if isinstance(seats, bool) or not isinstance(seats, (int, float)) or seats < MIN_SEATS or seats > MAX_SEATS:
        errors.append("Seats required must be between 1 and 1000")

    if not isinstance(data.get("facilitiesRequired"), list):
        errors.append("Facilities must be an array")

    return errors
