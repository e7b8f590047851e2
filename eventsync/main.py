# main.py
import logging
from typing import List, Optional

import fastapi
import uvicorn
from fastapi import Request, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from eventsync import config
from eventsync.agents import AgentSuitabilityRanker, EventExtractionAgent
from eventsync.auth import (
    ADMIN_ROLE,
    User,
    Token,
    UserCreate,
    authenticate_user,
    create_access_token,
    get_current_active_user,
    create_user,
    pwd_context,
    registration_conflict,
)
from eventsync.calendar_sync import CalendarClient
from eventsync.catalog import VenueCatalog
from eventsync.database import database, engine, metadata
from eventsync.errors import EventSyncError
from eventsync.logging_config import setup_logging
from eventsync.matcher import VenueMatcher
from eventsync.models import users
from eventsync.occupancy import OccupancyLedger
from eventsync.records import RequestStore
from eventsync.seed import seed_venues
from eventsync.workflow import BookingWorkflow

setup_logging()
logger = logging.getLogger(__name__)

#FastAPI Setup
app = fastapi.FastAPI(title="EventSync", version="1.0.0")


# Request bodies
class RequirementsBody(BaseModel):
    date: str
    start_time: str
    duration_hours: float
    seats_required: int
    facilities_required: List[str] = []
    event_name: Optional[str] = None
    description: Optional[str] = None

class BookingBody(RequirementsBody):
    event_name: str
    venue_id: str

class ExtractBody(BaseModel):
    user_text: str

class ApproveBody(BaseModel):
    request_id: str

class RejectBody(BaseModel):
    request_id: str
    reason: Optional[str] = None

class CalendarSyncBody(BaseModel):
    approved_event_id: str


def build_workflow() -> BookingWorkflow:
    catalog = VenueCatalog(database)
    ledger = OccupancyLedger(database)
    ai_ranker = AgentSuitabilityRanker() if config.AI_ENABLED else None
    extractor = EventExtractionAgent() if config.AI_ENABLED else None
    matcher = VenueMatcher(catalog, ledger, ai_ranker=ai_ranker)
    return BookingWorkflow(
        catalog,
        ledger,
        RequestStore(database),
        matcher,
        calendar=CalendarClient(),
        extractor=extractor,
    )

def get_workflow(request: Request) -> BookingWorkflow:
    return request.app.state.workflow


# Logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


# Exception handlers
@app.exception_handler(EventSyncError)
async def eventsync_exception_handler(request: Request, exc: EventSyncError):
    if exc.status_code >= 500:
        logger.error(f"[{exc.code}] {exc.message} | Path={request.url.path}")
    else:
        logger.warning(f"[{exc.code}] {exc.message} | Path={request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"[ValidationError] Path={request.url.path} | {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "error": "validation_error",
            "message": "Invalid request parameters",
            "details": {"errors": exc.errors()},
        }),
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception during {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error", "retryable": True},
    )


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# Login endpoint
@app.post("/token", response_model=Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = await authenticate_user(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token(user.username), "token_type": "bearer"}

# Registration endpoint
@app.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate):
    taken = await registration_conflict(user.username, user.email)
    if taken:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=taken)

    await create_user(user)
    return {"message": "User created successfully."}


# Venue discovery
@app.get("/api/venues")
async def list_venues(current_user: User = Depends(get_current_active_user),
                      workflow: BookingWorkflow = Depends(get_workflow)):
    venues = await workflow.list_venues()
    return {"count": len(venues), "venues": venues}

@app.post("/api/events/extract")
async def extract_event(body: ExtractBody, current_user: User = Depends(get_current_active_user),
                        workflow: BookingWorkflow = Depends(get_workflow)):
    return {"data": await workflow.extract_event(body.user_text)}

@app.post("/api/events/find-available")
async def find_available_venues(body: RequirementsBody, current_user: User = Depends(get_current_active_user),
                                workflow: BookingWorkflow = Depends(get_workflow)):
    matches = await workflow.find_available_venues(body.model_dump())
    return {"count": len(matches), "venues": [match.to_dict() for match in matches]}


# Booking lifecycle
@app.post("/api/events/requests", status_code=status.HTTP_201_CREATED)
async def submit_request(body: BookingBody, current_user: User = Depends(get_current_active_user),
                         workflow: BookingWorkflow = Depends(get_workflow)):
    fields = body.model_dump(exclude={"venue_id"})
    request_id = await workflow.submit_booking(current_user, fields, body.venue_id)
    return {"message": "Event request submitted for admin approval", "request_id": request_id}

@app.get("/api/events/pending/{user_id}")
async def get_pending_events(user_id: str, current_user: User = Depends(get_current_active_user),
                             workflow: BookingWorkflow = Depends(get_workflow)):
    events = await workflow.get_pending_for_user(user_id, requester=current_user)
    return {"count": len(events), "events": [event.to_dict() for event in events]}

@app.get("/api/events/approved/{user_id}")
async def get_approved_events(user_id: str, current_user: User = Depends(get_current_active_user),
                              workflow: BookingWorkflow = Depends(get_workflow)):
    events = await workflow.get_approved_for_user(user_id, requester=current_user)
    return {"count": len(events), "events": [event.to_dict() for event in events]}

@app.post("/api/events/sync-calendar")
async def sync_calendar(body: CalendarSyncBody, current_user: User = Depends(get_current_active_user),
                        workflow: BookingWorkflow = Depends(get_workflow)):
    result = await workflow.sync_to_calendar(body.approved_event_id, current_user)
    return {"message": "Event synced to calendar", **result}


# Admin endpoints
@app.get("/api/admin/pending")
async def get_all_pending(current_user: User = Depends(get_current_active_user),
                          workflow: BookingWorkflow = Depends(get_workflow)):
    requests = await workflow.get_all_pending(current_user)
    return {"count": len(requests), "requests": [request.to_dict() for request in requests]}

@app.post("/api/admin/approve")
async def approve_request(body: ApproveBody, current_user: User = Depends(get_current_active_user),
                          workflow: BookingWorkflow = Depends(get_workflow)):
    approved_event_id = await workflow.approve_request(body.request_id, current_user)
    return {"message": "Event request approved", "approved_event_id": approved_event_id}

@app.post("/api/admin/reject")
async def reject_request(body: RejectBody, current_user: User = Depends(get_current_active_user),
                         workflow: BookingWorkflow = Depends(get_workflow)):
    await workflow.reject_request(body.request_id, current_user, body.reason)
    return {"message": "Event request rejected", "request_id": body.request_id}

@app.post("/api/admin/expire")
async def expire_requests(current_user: User = Depends(get_current_active_user),
                          workflow: BookingWorkflow = Depends(get_workflow)):
    expired = await workflow.expire_stale_requests(admin=current_user)
    return {"count": len(expired), "expired": expired}


@app.on_event("startup")
async def startup():
    await database.connect()
    # Create tables if they don't exist
    metadata.create_all(bind=engine)

    async with database.transaction():
        query = users.select().where(users.c.username == config.ADMIN_USERNAME)
        if not await database.fetch_one(query):
            admin_user = {
                "username": config.ADMIN_USERNAME,
                "full_name": "Venue Administrator",
                "email": config.ADMIN_EMAIL,
                "hashed_password": pwd_context.hash(config.ADMIN_PASSWORD),
                "role": ADMIN_ROLE,
            }
            await database.execute(query=users.insert(), values=admin_user)

    app.state.workflow = build_workflow()
    if config.SEED_SAMPLE_VENUES:
        await seed_venues(app.state.workflow.catalog)
    logger.info(f"EventSync started (AI features {'on' if config.AI_ENABLED else 'off'})")


@app.on_event("shutdown")
async def shutdown():
    await database.disconnect()


def run():
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("eventsync.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
