# timeslots.py
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Union

from eventsync.errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"
TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


def parse_date(value: Union[str, date], field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        raise ValidationError("Date must be in YYYY-MM-DD format", field=field)
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field=field)


def parse_time(value: Union[str, time], field: str = "start_time") -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = TIME_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise ValidationError("Time must be in HH:MM format (24-hour)", field=field)
    return time(int(match.group(1)), int(match.group(2)))


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def end_time_for(start: time, duration_hours: float) -> time:
    """Start plus a fractional number of hours, minutes rounded down."""
    if duration_hours is None or duration_hours <= 0:
        raise ValidationError("Duration must be greater than zero", field="duration_hours")
    total = int(to_minutes(start) + duration_hours * 60)
    if total >= MINUTES_PER_DAY:
        raise ValidationError(
            "Events must end on the same day they start",
            field="duration_hours",
        )
    return time(total // 60, total % 60)


def slot_key(start: Union[str, time], duration_hours: float) -> str:
    """Canonical "HH:MM-HH:MM" label for a start time and duration."""
    start = parse_time(start)
    return f"{format_time(start)}-{format_time(end_time_for(start, duration_hours))}"


@dataclass(frozen=True)
class TimeSlot:
    """A reservation window on a single calendar day, half-open [start, end)."""

    date: date
    start_time: time
    end_time: time

    def __post_init__(self):
        if to_minutes(self.start_time) >= to_minutes(self.end_time):
            raise ValidationError("Start time must be before end time", field="start_time")

    @classmethod
    def from_start(cls, day: Union[str, date], start: Union[str, time], duration_hours: float) -> "TimeSlot":
        start = parse_time(start)
        return cls(parse_date(day), start, end_time_for(start, duration_hours))

    @classmethod
    def from_key(cls, day: Union[str, date], key: str) -> "TimeSlot":
        try:
            start, end = key.split("-")
        except ValueError:
            raise ValidationError(f"Malformed slot key: {key}", field="slot_key")
        return cls(parse_date(day), parse_time(start, "slot_key"), parse_time(end, "slot_key"))

    @property
    def key(self) -> str:
        return f"{format_time(self.start_time)}-{format_time(self.end_time)}"

    @property
    def date_str(self) -> str:
        return self.date.strftime(DATE_FORMAT)

    def overlaps(self, other: "TimeSlot") -> bool:
        return overlaps(self, other)

    def to_dict(self) -> dict:
        return {
            "date": self.date_str,
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
        }


def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
    # touching boundaries do not overlap
    if a.date != b.date:
        return False
    return to_minutes(a.start_time) < to_minutes(b.end_time) and to_minutes(a.end_time) > to_minutes(b.start_time)
