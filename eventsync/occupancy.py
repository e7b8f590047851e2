# occupancy.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple

import sqlalchemy

from eventsync.database import database
from eventsync.models import occupancy
from eventsync.timeslots import TimeSlot

logger = logging.getLogger(__name__)


class _KeyLock:
    # dropped from the ledger once nobody holds or waits on it
    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class OccupancyLedger:
    """Per-venue record of booked slots, keyed by (venue_id, date, slot_key).

    The ledger only reads and writes keys. Deciding whether a request conflicts
    is the caller's job, done while holding ``lock(venue_id, date)``.

    SQLite allows a single writer, and two deferred transactions that both read
    before writing fail with "database is locked" instead of waiting. On SQLite
    every holder of a venue lock therefore also takes one store-wide write lock.
    """

    def __init__(self, db=database, serialize_writes: Optional[bool] = None):
        self.db = db
        if serialize_writes is None:
            serialize_writes = db.url.dialect == "sqlite"
        self._write_lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize_writes else None
        self._locks: Dict[Tuple[str, str], _KeyLock] = {}

    @asynccontextmanager
    async def lock(self, venue_id: str, date: str) -> AsyncIterator[None]:
        """Mutex guarding every read-check-write on one venue's day."""
        key = (venue_id, date)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                if self._write_lock is None:
                    yield
                else:
                    async with self._write_lock:
                        yield
        finally:
            entry.holders -= 1
            if not entry.holders:
                del self._locks[key]

    @property
    def held_keys(self) -> int:
        return len(self._locks)

    async def _fetch_row(self, venue_id: str, date: str, slot_key: str):
        query = occupancy.select().where(
            occupancy.c.venue_id == venue_id,
            occupancy.c.date == date,
            occupancy.c.slot_key == slot_key,
        )
        return await self.db.fetch_one(query)

    async def is_occupied(self, venue_id: str, date: str, slot_key: str) -> bool:
        row = await self._fetch_row(venue_id, date, slot_key)
        return bool(row and row["occupied"])

    async def block(self, venue_id: str, date: str, slot_key: str, request_id: Optional[str] = None) -> None:
        """Mark a slot occupied. Blocking an already blocked slot is a no-op."""
        slot = TimeSlot.from_key(date, slot_key)
        row = await self._fetch_row(venue_id, date, slot_key)
        if row is None:
            await self.db.execute(occupancy.insert().values(
                venue_id=venue_id,
                date=date,
                slot_key=slot_key,
                start_time=slot.to_dict()["start_time"],
                end_time=slot.to_dict()["end_time"],
                occupied=True,
                request_id=request_id,
            ))
        elif not row["occupied"]:
            await self.db.execute(
                occupancy.update()
                .where(occupancy.c.id == row["id"])
                .values(occupied=True, request_id=request_id)
            )
        logger.info(f"[Block] venue={venue_id} date={date} slot={slot_key} request={request_id}")

    async def release(self, venue_id: str, date: str, slot_key: str, request_id: Optional[str] = None) -> bool:
        """Free a slot. With ``request_id`` only that request's block is removed."""
        conditions = [
            occupancy.c.venue_id == venue_id,
            occupancy.c.date == date,
            occupancy.c.slot_key == slot_key,
        ]
        if request_id is not None:
            conditions.append(occupancy.c.request_id == request_id)
        row = await self.db.fetch_one(occupancy.select().where(*conditions))
        if row is None:
            return False
        await self.db.execute(occupancy.delete().where(occupancy.c.id == row["id"]))
        logger.info(f"[Release] venue={venue_id} date={date} slot={slot_key}")
        return True

    async def occupied_slots(self, venue_id: str, date: Optional[str] = None) -> List[TimeSlot]:
        conditions = [occupancy.c.venue_id == venue_id, occupancy.c.occupied == sqlalchemy.true()]
        if date is not None:
            conditions.append(occupancy.c.date == date)
        query = occupancy.select().where(*conditions).order_by(occupancy.c.date, occupancy.c.start_time)
        rows = await self.db.fetch_all(query)
        return [TimeSlot.from_key(row["date"], row["slot_key"]) for row in rows]

    async def occupied_slots_by_venue(self, venue_ids: Iterable[str]) -> Dict[str, List[TimeSlot]]:
        venue_ids = list(venue_ids)
        booked: Dict[str, List[TimeSlot]] = {venue_id: [] for venue_id in venue_ids}
        if not venue_ids:
            return booked
        query = occupancy.select().where(
            occupancy.c.venue_id.in_(venue_ids),
            occupancy.c.occupied == sqlalchemy.true(),
        ).order_by(occupancy.c.date, occupancy.c.start_time)
        for row in await self.db.fetch_all(query):
            booked[row["venue_id"]].append(TimeSlot.from_key(row["date"], row["slot_key"]))
        return booked

    async def find_conflicts(self, venue_id: str, slot: TimeSlot) -> List[TimeSlot]:
        """Every booked slot on the same day that overlaps ``slot``."""
        return [booked for booked in await self.occupied_slots(venue_id, slot.date_str) if booked.overlaps(slot)]
