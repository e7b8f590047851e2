# catalog.py
from typing import List, Optional

import sqlalchemy

from eventsync.data_models import Venue
from eventsync.database import database
from eventsync.models import venues


def _venue_from_row(row) -> Venue:
    return Venue(
        id=row["id"],
        name=row["name"],
        capacity=row["capacity"],
        facilities=list(row["facilities"] or []),
        type=row["type"],
        building=row["building"],
        floor=row["floor"],
        is_active=bool(row["is_active"]),
    )


class VenueCatalog:
    """Read-only view of the venue catalog."""

    def __init__(self, db=database):
        self.db = db

    async def get_venue(self, venue_id: str) -> Optional[Venue]:
        row = await self.db.fetch_one(venues.select().where(venues.c.id == venue_id))
        return _venue_from_row(row) if row else None

    async def list_venues(self, active_only: bool = True) -> List[Venue]:
        query = venues.select().order_by(venues.c.name)
        if active_only:
            query = query.where(venues.c.is_active == sqlalchemy.true())
        return [_venue_from_row(row) for row in await self.db.fetch_all(query)]

    async def add_venue(self, venue: Venue) -> str:
        """Used by catalog seeding; the booking core never creates venues."""
        await self.db.execute(venues.insert().values(
            id=venue.id,
            name=venue.name,
            type=venue.type,
            capacity=venue.capacity,
            facilities=list(venue.facilities),
            building=venue.building,
            floor=venue.floor,
            is_active=venue.is_active,
        ))
        return venue.id

    async def count(self) -> int:
        query = sqlalchemy.select(sqlalchemy.func.count()).select_from(venues)
        return await self.db.fetch_val(query)
