# matcher.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from eventsync.catalog import VenueCatalog
from eventsync.config import AI_TIMEOUT_SECONDS, DB_TIMEOUT_SECONDS
from eventsync.data_models import Requirements, Venue, VenueMatch
from eventsync.errors import bounded
from eventsync.occupancy import OccupancyLedger
from eventsync.timeslots import TimeSlot

logger = logging.getLogger(__name__)

FACILITY_WEIGHT = 70
MULTI_FACILITY_MIN_RATIO = 0.3


@dataclass
class Candidate:
    """A venue that passed the time and facility filters."""
    venue: Venue
    matched_facilities: int
    booked: List[TimeSlot] = field(default_factory=list)

    @property
    def occupied_times(self):
        return [slot.to_dict() for slot in self.booked]


def facility_matches(required: str, offered: str) -> bool:
    required, offered = required.strip().lower(), offered.strip().lower()
    if not required or not offered:
        return False
    return required in offered or offered in required


def count_matched_facilities(required: Sequence[str], offered: Sequence[str]) -> int:
    return sum(1 for need in required if any(facility_matches(need, have) for have in offered))


def facilities_acceptable(matched: int, required_count: int) -> bool:
    """One facility must match exactly; several need a third of them."""
    if required_count == 0:
        return True
    ratio = matched / required_count
    if required_count == 1:
        return ratio == 1.0
    return ratio >= MULTI_FACILITY_MIN_RATIO


def facility_score(matched: int, required_count: int) -> float:
    if required_count == 0:
        return float(FACILITY_WEIGHT)
    return matched / required_count * FACILITY_WEIGHT


def capacity_score(seats_required: int, capacity: int) -> int:
    """Reward venues sized close to the audience, not far beyond it."""
    ratio = seats_required / capacity if capacity else 0
    if 0.5 <= ratio <= 0.9:
        return 30
    if 0.3 <= ratio < 0.5:
        return 25
    return 20


class SuitabilityRanker(Protocol):
    async def rank(self, requirements: Requirements, candidates: List[Candidate]) -> List[VenueMatch]:
        ...


class DeterministicScorer:
    """Facility fit (70) plus capacity fit (30), smallest venue wins ties."""

    name = "deterministic"

    async def rank(self, requirements: Requirements, candidates: List[Candidate]) -> List[VenueMatch]:
        required_count = len(requirements.facilities_required)
        matches = []
        for candidate in candidates:
            venue = candidate.venue
            if venue.capacity < requirements.seats_required:
                continue
            facilities = facility_score(candidate.matched_facilities, required_count)
            capacity = capacity_score(requirements.seats_required, venue.capacity)
            matches.append(VenueMatch(
                venue=venue,
                match_score=int(facilities + capacity + 0.5),
                facility_score=facilities,
                capacity_score=capacity,
                matched_facilities=candidate.matched_facilities,
                occupied_times=candidate.occupied_times,
            ))
        matches.sort(key=lambda match: (-match.match_score, match.venue.capacity))
        return matches


class VenueMatcher:
    def __init__(self, catalog: VenueCatalog, ledger: OccupancyLedger,
                 ai_ranker: Optional[SuitabilityRanker] = None,
                 db_timeout: float = DB_TIMEOUT_SECONDS,
                 ai_timeout: float = AI_TIMEOUT_SECONDS):
        self.catalog = catalog
        self.ledger = ledger
        self.ai_ranker = ai_ranker
        self.deterministic = DeterministicScorer()
        self.db_timeout = db_timeout
        self.ai_timeout = ai_timeout

    def select_ranker(self, requirements: Requirements) -> SuitabilityRanker:
        if requirements.event_name and self.ai_ranker is not None:
            return self.ai_ranker
        return self.deterministic

    async def _candidates(self, requirements: Requirements) -> List[Candidate]:
        slot = requirements.slot
        venues = await self.catalog.list_venues()
        booked = await self.ledger.occupied_slots_by_venue(venue.id for venue in venues)

        candidates = []
        for venue in venues:
            slots = booked.get(venue.id, [])
            # availability is never relaxed
            if any(slot.overlaps(taken) for taken in slots):
                continue
            matched = count_matched_facilities(requirements.facilities_required, venue.facilities)
            if not facilities_acceptable(matched, len(requirements.facilities_required)):
                continue
            candidates.append(Candidate(venue=venue, matched_facilities=matched, booked=slots))
        return candidates

    async def find_available_venues(self, requirements: Requirements) -> List[VenueMatch]:
        candidates = await bounded(self._candidates(requirements), self.db_timeout, "venue lookup")
        ranker = self.select_ranker(requirements)
        logger.info(
            f"[Match] {len(candidates)} free venue(s) for {requirements.slot.date_str} "
            f"{requirements.slot.key}, ranking with {getattr(ranker, 'name', type(ranker).__name__)}"
        )
        if not candidates:
            return []
        if ranker is self.deterministic:
            return await ranker.rank(requirements, candidates)
        return await bounded(ranker.rank(requirements, candidates), self.ai_timeout, "suitability ranking")
