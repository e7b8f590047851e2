# agents.py
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from autogen_agentchat.agents import AssistantAgent

from eventsync.config import get_model_client
from eventsync.data_models import Requirements, VenueMatch, requirements_to_dict
from eventsync.errors import InternalError
from eventsync.matcher import Candidate

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5


def _last_message(response) -> str:
    return str(response.messages[-1].content)


def _extract_json(content: str, opening: str, closing: str) -> Any:
    """Pull the outermost JSON object or array out of a chatty model reply."""
    start, end = content.find(opening), content.rfind(closing)
    if start == -1 or end < start:
        raise json.JSONDecodeError("no JSON payload in reply", content, 0)
    return json.loads(content[start:end + 1])


class EventExtractionAgent:
    """Turns a rough, typo-filled event description into structured fields."""

    def __init__(self, name: str = "EventExtractor", agent: Optional[Any] = None):
        self.name = name
        self.agent = agent or AssistantAgent(
            name=name,
            model_client=get_model_client(),
            system_message="""You are the EventSync booking assistant for a university campus.
            You read casual event descriptions written by students and staff and extract
            the event name, date, start time, duration, audience size and required facilities.
            You always answer with a single JSON object and nothing else.""",
        )

    async def extract(self, user_text: str) -> Dict[str, Any]:
        today = datetime.now()
        task = f"""
        Extract event details from the text below. Be forgiving of typos and informal phrasing.

        - The current date is {today.strftime('%A, %Y-%m-%d')}.
        - Dates without a year fall in the current year if still upcoming, otherwise next year.
        - Times are 24-hour HH:MM ("9 am" -> "09:00", "afternoon" -> "14:00", "evening" -> "18:00").
        - durationHours is between 0.5 and 8, default 2.
        - seatsRequired is between 1 and 1000 ("small group" -> 30, "class" -> 60, "seminar" -> 100).
        - facilitiesRequired is a list of standard names such as "Projector", "WiFi", "Whiteboard",
          "Computers", "Audio System", "Air Conditioning"; use [] when nothing is implied.

        JSON keys: eventName, date, startTime, durationHours, seatsRequired, facilitiesRequired.

        TEXT: "{user_text}"
        """
        response = await self.agent.run(task=task)
        content = _last_message(response)
        try:
            extracted = _extract_json(content, "{", "}")
        except json.JSONDecodeError:
            logger.error(f"[{self.name}] Could not parse extraction reply: {content[:200]}")
            raise InternalError("Could not understand the event description, please rephrase it")
        if not isinstance(extracted, dict):
            raise InternalError("Could not understand the event description, please rephrase it")
        return extracted


class AgentSuitabilityRanker:
    """Delegates ranking of free venues to an LLM that judges suitability from context."""

    name = "ai-suitability"

    def __init__(self, name: str = "VenueCoordinator", agent: Optional[Any] = None):
        self.agent_name = name
        self.agent = agent or AssistantAgent(
            name=name,
            model_client=get_model_client(),
            system_message="""You are the venue coordinator for a university campus.
            Given an event and a list of venues that are free at the requested time,
            you judge which venues suit the event. Capacity must be at least 80% of the
            requested seats; facilities matter but only block a venue when critical.
            You answer with a JSON array only.""",
        )

    def build_task(self, requirements: Requirements, candidates: List[Candidate]) -> str:
        event = requirements_to_dict(requirements)
        venues = [
            {
                "id": c.venue.id,
                "name": c.venue.name,
                "type": c.venue.type,
                "capacity": c.venue.capacity,
                "facilities": c.venue.facilities,
            }
            for c in candidates
        ]
        return f"""
        Event:
        {json.dumps(event, indent=2)}

        Free venues:
        {json.dumps(venues, indent=2)}

        Select at most {MAX_SUGGESTIONS} suitable venues. Return a JSON array of objects:
        [{{"venueId": "string", "suitabilityScore": 0-100, "reason": "short reason", "isSuitable": true}}]
        sorted by suitabilityScore descending.
        """

    async def rank(self, requirements: Requirements, candidates: List[Candidate]) -> List[VenueMatch]:
        response = await self.agent.run(task=self.build_task(requirements, candidates))
        content = _last_message(response)
        try:
            analysis = _extract_json(content, "[", "]")
        except json.JSONDecodeError:
            logger.error(f"[{self.agent_name}] Invalid JSON from model: {content[:200]}")
            raise InternalError("Venue suitability ranking failed, please retry")

        by_id = {c.venue.id: c for c in candidates}
        matches = []
        for item in analysis if isinstance(analysis, list) else []:
            if not isinstance(item, dict) or not item.get("isSuitable"):
                continue
            candidate = by_id.pop(item.get("venueId"), None)
            if candidate is None:
                continue
            try:
                score = int(round(float(item.get("suitabilityScore", 0))))
            except (TypeError, ValueError):
                score = 0
            matches.append(VenueMatch(
                venue=candidate.venue,
                match_score=score,
                matched_facilities=candidate.matched_facilities,
                occupied_times=candidate.occupied_times,
                suitability={"score": score, "reason": item.get("reason", "")},
            ))
        matches.sort(key=lambda match: (-match.match_score, match.venue.capacity))
        return matches[:MAX_SUGGESTIONS]
