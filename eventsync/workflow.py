# workflow.py
import logging
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from eventsync.auth import User
from eventsync.calendar_sync import CalendarClient
from eventsync.catalog import VenueCatalog
from eventsync.config import AI_TIMEOUT_SECONDS, DB_TIMEOUT_SECONDS, PENDING_REQUEST_TTL_HOURS
from eventsync.data_models import ApprovedEvent, EventRequest, RequestStatus, VenueMatch
from eventsync.database import database
from eventsync.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
    bounded,
)
from eventsync.matcher import VenueMatcher
from eventsync.occupancy import OccupancyLedger
from eventsync.records import RequestStore, as_utc, new_id, utcnow
from eventsync.timeslots import TimeSlot, format_time
from eventsync.validation import build_requirements, sanitize_input, validate_event_data

logger = logging.getLogger(__name__)

SYSTEM_REVIEWER = "system"
EXPIRED_REASON = "expired"


class BookingWorkflow:
    """Moves a booking through pending -> approved | rejected.

    Submitting provisionally blocks the slot so nobody else can take it while an
    admin reviews the request. Approving keeps the block, rejecting or expiring
    releases it. Every step that reads and then writes a venue's occupancy holds
    the ledger lock for that venue and day and runs in one transaction.
    """

    def __init__(self, catalog: VenueCatalog, ledger: OccupancyLedger, store: RequestStore,
                 matcher: VenueMatcher, calendar: Optional[CalendarClient] = None,
                 extractor=None, db=database,
                 db_timeout: float = DB_TIMEOUT_SECONDS,
                 ai_timeout: float = AI_TIMEOUT_SECONDS,
                 pending_ttl_hours: float = PENDING_REQUEST_TTL_HOURS):
        self.catalog = catalog
        self.ledger = ledger
        self.store = store
        self.matcher = matcher
        self.calendar = calendar or CalendarClient()
        self.extractor = extractor
        self.db = db
        self.db_timeout = db_timeout
        self.ai_timeout = ai_timeout
        self.pending_ttl = timedelta(hours=pending_ttl_hours)

    # Permissions

    @staticmethod
    def _require_admin(actor: User, action: str) -> None:
        if actor is None or not actor.is_admin:
            who = getattr(actor, "username", "anonymous")
            logger.warning(f"[Forbidden] {who} attempted to {action}")
            raise ForbiddenError(f"Admin access is required to {action}")

    @staticmethod
    def _require_owner_or_admin(actor: User, user_id: str) -> None:
        if actor is not None and (actor.is_admin or actor.username == user_id):
            return
        raise ForbiddenError("You can only access your own events", user_id=user_id)

    # Discovery

    async def list_venues(self) -> List[Dict[str, Any]]:
        async def _list():
            venues = await self.catalog.list_venues()
            booked = await self.ledger.occupied_slots_by_venue(venue.id for venue in venues)
            return venues, booked

        venues, booked = await bounded(_list(), self.db_timeout, "venue listing")
        listing = []
        for venue in venues:
            occupied_times = [slot.to_dict() for slot in booked.get(venue.id, [])]
            listing.append({
                **asdict(venue),
                "is_available": not occupied_times,
                "occupied_times": occupied_times,
            })
        return listing

    async def find_available_venues(self, data: Dict[str, Any]) -> List[VenueMatch]:
        requirements = build_requirements(data)
        return await self.matcher.find_available_venues(requirements)

    async def is_venue_available(self, venue_id: str, slot: TimeSlot) -> bool:
        return not await self.ledger.find_conflicts(venue_id, slot)

    async def extract_event(self, user_text: str) -> Dict[str, Any]:
        if self.extractor is None:
            raise ServiceUnavailableError("AI event extraction is not configured")
        text = sanitize_input(user_text or "")
        if not text:
            raise ValidationError("user_text is required", field="user_text")

        extracted = await bounded(self.extractor.extract(text), self.ai_timeout, "event extraction")
        errors = validate_event_data(extracted)
        if errors:
            raise ValidationError("Extracted event data is invalid", errors=errors, extracted=extracted)
        return extracted

    # Submit

    async def submit_booking(self, user: User, event_fields: Dict[str, Any], venue_id: str) -> str:
        requirements = build_requirements(event_fields, require_event_name=True)
        if not venue_id:
            raise ValidationError("venue_id is required", field="venue_id")
        return await bounded(self._submit(user, requirements, venue_id), self.db_timeout, "submit booking")

    async def _submit(self, user: User, requirements, venue_id: str) -> str:
        venue = await self.catalog.get_venue(venue_id)
        if venue is None or not venue.is_active:
            raise NotFoundError("Venue not found", venue_id=venue_id)

        slot = requirements.slot
        async with self.ledger.lock(venue.id, slot.date_str):
            async with self.db.transaction():
                conflicts = await self.ledger.find_conflicts(venue.id, slot)
                if conflicts:
                    logger.warning(
                        f"[Conflict] {user.username} lost {venue.name} {slot.date_str} {slot.key} "
                        f"to {[taken.key for taken in conflicts]}"
                    )
                    raise ConflictError(
                        "This slot is no longer available, choose another time or venue",
                        venue_id=venue.id,
                        date=slot.date_str,
                        slot=slot.key,
                        conflicts=[taken.key for taken in conflicts],
                    )

                request = EventRequest(
                    id=new_id(),
                    user_id=user.username,
                    user_email=user.email,
                    event_name=requirements.event_name,
                    description=requirements.description,
                    date=slot.date_str,
                    start_time=format_time(slot.start_time),
                    duration_hours=requirements.duration_hours,
                    seats_required=requirements.seats_required,
                    facilities_required=requirements.facilities_required,
                    venue_id=venue.id,
                    venue_name=venue.name,
                    slot_key=slot.key,
                )
                # request first, then the block: a request without a block is recoverable
                await self.store.create_request(request)
                await self.ledger.block(venue.id, slot.date_str, slot.key, request_id=request.id)

        logger.info(f"[Submit] request={request.id} user={user.username} venue={venue.name} {slot.date_str} {slot.key}")
        return request.id

    # Review

    async def _load_pending(self, request_id: str) -> EventRequest:
        request = await self.store.get_pending_request(request_id)
        if request is None:
            logger.warning(f"[NotFound] pending request {request_id}")
            raise NotFoundError("Event request not found", request_id=request_id)
        return request

    async def approve_request(self, request_id: str, admin: User) -> str:
        self._require_admin(admin, "approve requests")
        return await bounded(self._approve(request_id, admin.username), self.db_timeout, "approve request")

    async def _approve(self, request_id: str, approved_by: str) -> str:
        request = await self._load_pending(request_id)
        async with self.ledger.lock(request.venue_id, request.date):
            async with self.db.transaction():
                # may have been resolved while waiting for the lock
                request = await self._load_pending(request_id)
                # no availability re-check: the slot holds this request's own block
                approved_id = await self.store.create_approved_event(request, approved_by)
                await self.store.mark_reviewed(request.id, RequestStatus.APPROVED, approved_by)

        logger.info(f"[Approve] request={request_id} approved_event={approved_id} by={approved_by}")
        return approved_id

    async def reject_request(self, request_id: str, admin: User, reason: Optional[str] = None) -> None:
        self._require_admin(admin, "reject requests")
        await bounded(
            self._reject(request_id, admin.username, sanitize_input(reason) or None),
            self.db_timeout,
            "reject request",
        )

    async def _reject(self, request_id: str, rejected_by: str, reason: Optional[str]) -> None:
        request = await self._load_pending(request_id)
        async with self.ledger.lock(request.venue_id, request.date):
            async with self.db.transaction():
                request = await self._load_pending(request_id)
                await self.store.mark_reviewed(request.id, RequestStatus.REJECTED, rejected_by, reason)
                await self.ledger.release(request.venue_id, request.date, request.slot_key, request_id=request.id)

        logger.info(f"[Reject] request={request_id} by={rejected_by}" + (f": {reason}" if reason else ""))

    async def expire_stale_requests(self, admin: Optional[User] = None, now: Optional[datetime] = None) -> List[str]:
        """Reject pending requests nobody reviewed within the TTL and free their slots."""
        if admin is not None:
            self._require_admin(admin, "expire requests")
        cutoff = (as_utc(now) or utcnow()) - self.pending_ttl

        pending = await bounded(self.store.list_all_pending(), self.db_timeout, "list pending requests")
        expired = []
        for request in pending:
            if request.created_at is None or request.created_at > cutoff:
                continue
            try:
                await bounded(self._reject(request.id, SYSTEM_REVIEWER, EXPIRED_REASON),
                              self.db_timeout, "expire request")
            except NotFoundError:
                logger.info(f"[Expire] request={request.id} was reviewed concurrently")
                continue
            expired.append(request.id)

        if expired:
            logger.info(f"[Expire] {len(expired)} stale request(s) released: {expired}")
        return expired

    # Queries

    async def get_pending_for_user(self, user_id: str, requester: Optional[User] = None) -> List[EventRequest]:
        if requester is not None:
            self._require_owner_or_admin(requester, user_id)
        return await bounded(self.store.list_pending_for_user(user_id), self.db_timeout, "list pending requests")

    async def get_approved_for_user(self, user_id: str, requester: Optional[User] = None) -> List[ApprovedEvent]:
        if requester is not None:
            self._require_owner_or_admin(requester, user_id)
        return await bounded(self.store.list_approved_for_user(user_id), self.db_timeout, "list approved events")

    async def get_all_pending(self, admin: User) -> List[EventRequest]:
        self._require_admin(admin, "view all pending requests")
        return await bounded(self.store.list_all_pending(), self.db_timeout, "list pending requests")

    # Calendar

    async def sync_to_calendar(self, approved_event_id: str, user: User) -> Dict[str, str]:
        event = await bounded(self.store.get_approved_event(approved_event_id), self.db_timeout, "load approved event")
        if event is None:
            raise NotFoundError("Approved event not found", approved_event_id=approved_event_id)
        if event.user_id != user.username:
            raise ForbiddenError("You can only sync your own events", approved_event_id=approved_event_id)
        if event.calendar_event_id:
            raise ConflictError(
                "This event is already synced to the calendar",
                calendar_event_id=event.calendar_event_id,
            )

        result = self.calendar.create_event(event)
        stored = await bounded(
            self.store.set_calendar_event_id(approved_event_id, result["calendar_event_id"]),
            self.db_timeout,
            "store calendar id",
        )
        if not stored:
            logger.warning(f"[Calendar] approved event {approved_event_id} was synced concurrently")
            raise ConflictError("This event is already synced to the calendar", approved_event_id=approved_event_id)
        return result
