"""
Shared fixtures: a throwaway SQLite database, a small campus catalog,
and fully wired booking services.
"""

import os
import tempfile

TEST_DB = os.path.join(tempfile.gettempdir(), f"eventsync_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GEMINI_API_KEY"] = ""
os.environ["SEED_SAMPLE_VENUES"] = "false"

import pytest

from eventsync.auth import User, pwd_context
from eventsync.catalog import VenueCatalog
from eventsync.data_models import Venue
from eventsync.database import database, engine, metadata
from eventsync.matcher import VenueMatcher
from eventsync.models import users, venues
from eventsync.occupancy import OccupancyLedger
from eventsync.records import RequestStore
from eventsync.workflow import BookingWorkflow

CATALOG = [
    Venue(id="main-hall", name="Main Hall", capacity=100,
          facilities=["Projector", "Air Conditioning"], type="auditorium", building="Admin Block", floor="G"),
    Venue(id="seminar-room", name="Seminar Room", capacity=200,
          facilities=["Projector", "WiFi", "Whiteboard"], type="seminar", building="Academic Block", floor="1"),
    Venue(id="computer-lab", name="Computer Lab", capacity=40,
          facilities=["Computers", "Projector", "WiFi"], type="lab", building="CSE Block", floor="2"),
    Venue(id="board-room", name="Board Room", capacity=12,
          facilities=["WiFi"], type="meeting", building="Admin Block", floor="1"),
    Venue(id="open-air", name="Open Air Theatre", capacity=500,
          facilities=["Audio System"], type="outdoor", building="Grounds", floor="G"),
]

USERS = {
    "alice": ("alice@campus.edu", "alice-pass", "user"),
    "bob": ("bob@campus.edu", "bob-pass", "user"),
    "dean": ("dean@campus.edu", "dean-pass", "admin"),
}


def make_user(username: str) -> User:
    email, _, role = USERS[username]
    return User(username=username, email=email, role=role)


def event_fields(**overrides):
    fields = {
        "event_name": "Placement Talk",
        "description": "Pre-placement talk for final years",
        "date": "2026-01-05",
        "start_time": "14:00",
        "duration_hours": 2,
        "seats_required": 50,
        "facilities_required": ["Projector"],
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def fresh_schema():
    metadata.drop_all(bind=engine)
    metadata.create_all(bind=engine)
    yield
    metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_schema(fresh_schema):
    """Catalog and users written synchronously, for tests that start the app."""
    with engine.begin() as conn:
        conn.execute(venues.insert(), [
            {
                "id": v.id, "name": v.name, "type": v.type, "capacity": v.capacity,
                "facilities": v.facilities, "building": v.building, "floor": v.floor, "is_active": True,
            }
            for v in CATALOG
        ])
        conn.execute(users.insert(), [
            {
                "username": name, "full_name": name.title(), "email": email,
                "hashed_password": pwd_context.hash(password), "role": role,
            }
            for name, (email, password, role) in USERS.items()
        ])
    yield


@pytest.fixture
async def db(fresh_schema):
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture
async def catalog(db):
    venue_catalog = VenueCatalog(db)
    for venue in CATALOG:
        await venue_catalog.add_venue(venue)
    return venue_catalog


@pytest.fixture
def ledger(db):
    return OccupancyLedger(db)


@pytest.fixture
def store(db):
    return RequestStore(db)


@pytest.fixture
def matcher(catalog, ledger):
    return VenueMatcher(catalog, ledger)


@pytest.fixture
def workflow(catalog, ledger, store, matcher):
    return BookingWorkflow(catalog, ledger, store, matcher)


@pytest.fixture
def alice():
    return make_user("alice")


@pytest.fixture
def bob():
    return make_user("bob")


@pytest.fixture
def admin():
    return make_user("dean")
