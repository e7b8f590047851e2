# records.py
import uuid
from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy

from eventsync.data_models import ApprovedEvent, EventRequest, RequestStatus
from eventsync.database import database
from eventsync.models import approved_events, event_requests


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back naive
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _request_from_row(row) -> EventRequest:
    return EventRequest(
        id=row["id"],
        user_id=row["user_id"],
        user_email=row["user_email"],
        event_name=row["event_name"],
        description=row["description"],
        date=row["date"],
        start_time=row["start_time"],
        duration_hours=row["duration_hours"],
        seats_required=row["seats_required"],
        facilities_required=list(row["facilities_required"] or []),
        venue_id=row["venue_id"],
        venue_name=row["venue_name"],
        slot_key=row["slot_key"],
        status=RequestStatus(row["status"]),
        reviewed_by=row["reviewed_by"],
        rejection_reason=row["rejection_reason"],
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


def _approved_from_row(row) -> ApprovedEvent:
    return ApprovedEvent(
        id=row["id"],
        request_id=row["request_id"],
        user_id=row["user_id"],
        user_email=row["user_email"],
        event_name=row["event_name"],
        description=row["description"],
        date=row["date"],
        start_time=row["start_time"],
        duration_hours=row["duration_hours"],
        seats_required=row["seats_required"],
        facilities_required=list(row["facilities_required"] or []),
        venue_id=row["venue_id"],
        venue_name=row["venue_name"],
        slot_key=row["slot_key"],
        status=RequestStatus(row["status"]),
        approved_by=row["approved_by"],
        approved_at=as_utc(row["approved_at"]),
        created_at=as_utc(row["created_at"]),
        calendar_event_id=row["calendar_event_id"],
    )


class RequestStore:
    """Event requests and approved events. Rows are never deleted."""

    def __init__(self, db=database):
        self.db = db

    # Event requests

    async def create_request(self, request: EventRequest) -> str:
        now = utcnow()
        await self.db.execute(event_requests.insert().values(
            id=request.id,
            user_id=request.user_id,
            user_email=request.user_email,
            event_name=request.event_name,
            description=request.description,
            date=request.date,
            start_time=request.start_time,
            duration_hours=request.duration_hours,
            seats_required=request.seats_required,
            facilities_required=list(request.facilities_required),
            venue_id=request.venue_id,
            venue_name=request.venue_name,
            slot_key=request.slot_key,
            status=RequestStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        ))
        return request.id

    async def get_request(self, request_id: str) -> Optional[EventRequest]:
        row = await self.db.fetch_one(event_requests.select().where(event_requests.c.id == request_id))
        return _request_from_row(row) if row else None

    async def get_pending_request(self, request_id: str) -> Optional[EventRequest]:
        request = await self.get_request(request_id)
        if request is None or request.status is not RequestStatus.PENDING:
            return None
        return request

    async def mark_reviewed(self, request_id: str, status: RequestStatus, reviewed_by: str,
                            reason: Optional[str] = None) -> None:
        query = event_requests.update().where(event_requests.c.id == request_id).values(
            status=status.value,
            reviewed_by=reviewed_by,
            rejection_reason=reason,
            updated_at=utcnow(),
        )
        await self.db.execute(query)

    async def list_pending_for_user(self, user_id: str) -> List[EventRequest]:
        query = event_requests.select().where(
            event_requests.c.user_id == user_id,
            event_requests.c.status == RequestStatus.PENDING.value,
        ).order_by(sqlalchemy.desc(event_requests.c.created_at))
        return [_request_from_row(row) for row in await self.db.fetch_all(query)]

    async def list_all_pending(self) -> List[EventRequest]:
        query = event_requests.select().where(
            event_requests.c.status == RequestStatus.PENDING.value,
        ).order_by(event_requests.c.created_at)
        return [_request_from_row(row) for row in await self.db.fetch_all(query)]

    # Approved events

    async def create_approved_event(self, request: EventRequest, approved_by: str) -> str:
        approved_id = new_id()
        await self.db.execute(approved_events.insert().values(
            id=approved_id,
            request_id=request.id,
            user_id=request.user_id,
            user_email=request.user_email,
            event_name=request.event_name,
            description=request.description,
            date=request.date,
            start_time=request.start_time,
            duration_hours=request.duration_hours,
            seats_required=request.seats_required,
            facilities_required=list(request.facilities_required),
            venue_id=request.venue_id,
            venue_name=request.venue_name,
            slot_key=request.slot_key,
            status=RequestStatus.APPROVED.value,
            approved_by=approved_by,
            approved_at=utcnow(),
            created_at=request.created_at,
            calendar_event_id=None,
        ))
        return approved_id

    async def get_approved_event(self, approved_id: str) -> Optional[ApprovedEvent]:
        row = await self.db.fetch_one(approved_events.select().where(approved_events.c.id == approved_id))
        return _approved_from_row(row) if row else None

    async def list_approved_for_user(self, user_id: str) -> List[ApprovedEvent]:
        query = approved_events.select().where(
            approved_events.c.user_id == user_id,
        ).order_by(sqlalchemy.desc(approved_events.c.date))
        return [_approved_from_row(row) for row in await self.db.fetch_all(query)]

    async def set_calendar_event_id(self, approved_id: str, calendar_event_id: str) -> bool:
        """Write-once. False when the event already carried another calendar id."""
        query = approved_events.update().where(
            approved_events.c.id == approved_id,
            approved_events.c.calendar_event_id.is_(None),
        ).values(calendar_event_id=calendar_event_id)
        await self.db.execute(query)
        # execute() reports lastrowid, not the affected count, so read back what stuck
        stored = await self.db.fetch_val(
            sqlalchemy.select(approved_events.c.calendar_event_id).where(approved_events.c.id == approved_id)
        )
        return stored == calendar_event_id
