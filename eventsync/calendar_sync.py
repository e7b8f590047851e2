# calendar_sync.py
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict
from urllib.parse import urlencode

from eventsync.data_models import ApprovedEvent

logger = logging.getLogger(__name__)

TEMPLATE_URL = "https://calendar.google.com/calendar/render"


class CalendarClient:
    """Stand-in for the calendar provider: issues an event id and an add-to-calendar link."""

    def create_event(self, event: ApprovedEvent) -> Dict[str, str]:
        start = datetime.strptime(f"{event.date} {event.start_time}", "%Y-%m-%d %H:%M")
        end = start + timedelta(hours=event.duration_hours)
        params = {
            "action": "TEMPLATE",
            "text": event.event_name,
            "dates": f"{start:%Y%m%dT%H%M%S}/{end:%Y%m%dT%H%M%S}",
            "details": event.description or "",
            "location": event.venue_name,
        }
        calendar_event_id = f"evt_{uuid.uuid4().hex[:20]}"
        logger.info(f"[Calendar] Created {calendar_event_id} for approved event {event.id}")
        return {
            "calendar_event_id": calendar_event_id,
            "html_link": f"{TEMPLATE_URL}?{urlencode(params)}",
        }
