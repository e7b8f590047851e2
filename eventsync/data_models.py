# data_models.py
import enum
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from eventsync.timeslots import TimeSlot, format_time, DATE_FORMAT


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class Venue:
    """A bookable campus venue from the catalog."""
    id: str
    name: str
    capacity: int
    facilities: List[str] = field(default_factory=list)
    type: Optional[str] = None
    building: Optional[str] = None
    floor: Optional[str] = None
    is_active: bool = True


@dataclass
class Requirements:
    """What an organiser needs: when, how many seats, which facilities."""
    date: date
    start_time: time
    duration_hours: float
    seats_required: int
    facilities_required: List[str] = field(default_factory=list)
    event_name: Optional[str] = None
    description: Optional[str] = None

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_start(self.date, self.start_time, self.duration_hours)


@dataclass
class EventRequest:
    id: str
    user_id: str
    event_name: str
    date: str
    start_time: str
    duration_hours: float
    seats_required: int
    facilities_required: List[str]
    venue_id: str
    venue_name: str
    slot_key: str
    status: RequestStatus = RequestStatus.PENDING
    description: Optional[str] = None
    user_email: Optional[str] = None
    reviewed_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_key(self.date, self.slot_key)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class ApprovedEvent:
    id: str
    request_id: str
    user_id: str
    event_name: str
    date: str
    start_time: str
    duration_hours: float
    seats_required: int
    facilities_required: List[str]
    venue_id: str
    venue_name: str
    slot_key: str
    approved_by: str
    approved_at: datetime
    status: RequestStatus = RequestStatus.APPROVED
    description: Optional[str] = None
    user_email: Optional[str] = None
    created_at: Optional[datetime] = None
    calendar_event_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class VenueMatch:
    """A venue that is free for the requested slot, with its ranking."""
    venue: Venue
    match_score: int
    facility_score: float = 0.0
    capacity_score: int = 0
    matched_facilities: int = 0
    is_available: bool = True
    occupied_times: List[Dict[str, str]] = field(default_factory=list)
    suitability: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self.venue)
        data.update(
            match_score=self.match_score,
            facility_score=round(self.facility_score, 2),
            capacity_score=self.capacity_score,
            matched_facilities=self.matched_facilities,
            is_available=self.is_available,
            occupied_times=self.occupied_times,
            suitability=self.suitability,
        )
        return data


def requirements_to_dict(requirements: Requirements) -> Dict[str, Any]:
    return {
        "date": requirements.date.strftime(DATE_FORMAT),
        "start_time": format_time(requirements.start_time),
        "duration_hours": requirements.duration_hours,
        "seats_required": requirements.seats_required,
        "facilities_required": list(requirements.facilities_required),
        "event_name": requirements.event_name,
        "description": requirements.description,
    }
