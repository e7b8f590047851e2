# seed.py
import logging

from eventsync.catalog import VenueCatalog
from eventsync.data_models import Venue

logger = logging.getLogger(__name__)

SAMPLE_VENUES = [
    Venue(id="main-hall", name="Main Hall", type="auditorium", capacity=100,
          facilities=["Projector", "Air Conditioning", "Audio System"], building="Admin Block", floor="G"),
    Venue(id="seminar-room-a", name="Seminar Room A", type="seminar", capacity=60,
          facilities=["Projector", "WiFi", "Whiteboard"], building="Academic Block 1", floor="1"),
    Venue(id="computer-lab-2", name="Computer Lab 2", type="lab", capacity=40,
          facilities=["Computers", "Projector", "WiFi", "Air Conditioning"], building="CSE Block", floor="2"),
    Venue(id="conference-room", name="Conference Room", type="meeting", capacity=20,
          facilities=["Smart Board", "WiFi", "Video Conferencing"], building="Admin Block", floor="1"),
    Venue(id="open-air-theatre", name="Open Air Theatre", type="outdoor", capacity=500,
          facilities=["Audio System", "Stage Lighting"], building="Campus Grounds", floor="G"),
    Venue(id="lecture-hall-3", name="Lecture Hall 3", type="classroom", capacity=120,
          facilities=["Projector", "Audio System", "Whiteboard", "WiFi"], building="Lecture Hall Complex", floor="G"),
]


async def seed_venues(catalog: VenueCatalog) -> int:
    """Insert the sample catalog into an empty venue table."""
    if await catalog.count():
        return 0
    for venue in SAMPLE_VENUES:
        await catalog.add_venue(venue)
    logger.info(f"[Seed] Added {len(SAMPLE_VENUES)} sample venues")
    return len(SAMPLE_VENUES)
