"""AI collaborators driven by stub agents that answer with canned replies."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from eventsync.agents import AgentSuitabilityRanker, EventExtractionAgent
from eventsync.errors import InternalError, ServiceUnavailableError, ValidationError
from eventsync.matcher import VenueMatcher
from eventsync.validation import build_requirements
from eventsync.workflow import BookingWorkflow

from conftest import event_fields

EXTRACTED = {
    "eventName": "Robotics Club Meetup",
    "date": "2026-01-21",
    "startTime": "18:00",
    "durationHours": 2,
    "seatsRequired": 30,
    "facilitiesRequired": ["Projector", "WiFi"],
}

RANKING = [
    {"venueId": "computer-lab", "suitabilityScore": 60, "reason": "Too small", "isSuitable": False},
    {"venueId": "seminar-room", "suitabilityScore": 80, "reason": "Roomy", "isSuitable": True},
    {"venueId": "main-hall", "suitabilityScore": 92, "reason": "Right size", "isSuitable": True},
    {"venueId": "rooftop", "suitabilityScore": 99, "reason": "Not in the catalog", "isSuitable": True},
]


class StubAgent:
    """Answers every task with the same reply, optionally after a delay."""

    def __init__(self, reply: str, delay: float = 0):
        self.reply = reply
        self.delay = delay
        self.tasks = []

    async def run(self, task):
        self.tasks.append(task)
        if self.delay:
            await asyncio.sleep(self.delay)
        return SimpleNamespace(messages=[SimpleNamespace(content=self.reply)])


class TestEventExtraction:

    async def test_json_is_pulled_out_of_chatter(self):
        agent = StubAgent(f"Sure! Here you go:\n```json\n{json.dumps(EXTRACTED)}\n```\nAnything else?")
        extractor = EventExtractionAgent(agent=agent)

        assert await extractor.extract("robotics meetup on jan 21 evening, 30 ppl, need projector") == EXTRACTED
        assert "robotics meetup" in agent.tasks[0]

    async def test_unparseable_reply(self):
        extractor = EventExtractionAgent(agent=StubAgent("I could not find an event in that text."))

        with pytest.raises(InternalError) as exc_info:
            await extractor.extract("hello")
        assert exc_info.value.retryable


class TestSuitabilityRanking:

    async def test_only_suitable_catalog_venues_are_kept(self, catalog, ledger):
        ranker = AgentSuitabilityRanker(agent=StubAgent(json.dumps(RANKING)))
        matcher = VenueMatcher(catalog, ledger, ai_ranker=ranker)

        matches = await matcher.find_available_venues(build_requirements(event_fields()))

        assert [(m.venue.id, m.match_score) for m in matches] == [("main-hall", 92), ("seminar-room", 80)]
        assert matches[0].suitability == {"score": 92, "reason": "Right size"}

    async def test_booked_venues_are_never_sent_to_the_agent(self, catalog, ledger):
        agent = StubAgent(json.dumps(RANKING))
        matcher = VenueMatcher(catalog, ledger, ai_ranker=AgentSuitabilityRanker(agent=agent))
        await ledger.block("main-hall", "2026-01-05", "13:00-15:00")

        matches = await matcher.find_available_venues(build_requirements(event_fields()))

        assert '"main-hall"' not in agent.tasks[0]
        assert [m.venue.id for m in matches] == ["seminar-room"]

    async def test_deterministic_scoring_without_event_context(self, catalog, ledger):
        agent = StubAgent(json.dumps(RANKING))
        matcher = VenueMatcher(catalog, ledger, ai_ranker=AgentSuitabilityRanker(agent=agent))

        requirements = build_requirements(event_fields(event_name=None))
        matches = await matcher.find_available_venues(requirements)

        assert agent.tasks == []
        assert matches[0].match_score == 100

    async def test_slow_agent_times_out_as_retryable(self, catalog, ledger):
        ranker = AgentSuitabilityRanker(agent=StubAgent(json.dumps(RANKING), delay=1))
        matcher = VenueMatcher(catalog, ledger, ai_ranker=ranker, ai_timeout=0.05)

        with pytest.raises(InternalError) as exc_info:
            await matcher.find_available_venues(build_requirements(event_fields()))
        assert exc_info.value.retryable
        assert exc_info.value.to_dict()["retryable"] is True

    async def test_invalid_ranking_reply(self, catalog, ledger):
        ranker = AgentSuitabilityRanker(agent=StubAgent("main-hall looks great"))
        matcher = VenueMatcher(catalog, ledger, ai_ranker=ranker)

        with pytest.raises(InternalError):
            await matcher.find_available_venues(build_requirements(event_fields()))


class TestWorkflowExtraction:

    def workflow_with(self, catalog, ledger, store, matcher, agent):
        return BookingWorkflow(catalog, ledger, store, matcher, extractor=EventExtractionAgent(agent=agent))

    async def test_extracts_valid_event(self, catalog, ledger, store, matcher):
        workflow = self.workflow_with(catalog, ledger, store, matcher, StubAgent(json.dumps(EXTRACTED)))

        assert await workflow.extract_event("<b>robotics</b> meetup jan 21") == EXTRACTED

    async def test_invalid_extraction_lists_every_problem(self, catalog, ledger, store, matcher):
        reply = json.dumps({**EXTRACTED, "eventName": "", "durationHours": 12})
        workflow = self.workflow_with(catalog, ledger, store, matcher, StubAgent(reply))

        with pytest.raises(ValidationError) as exc_info:
            await workflow.extract_event("something on jan 21")
        assert exc_info.value.context["errors"] == [
            "Event name is required",
            "Duration must be between 0.5 and 8 hours",
        ]

    async def test_blank_text(self, catalog, ledger, store, matcher):
        workflow = self.workflow_with(catalog, ledger, store, matcher, StubAgent("{}"))

        with pytest.raises(ValidationError) as exc_info:
            await workflow.extract_event("   ")
        assert exc_info.value.field == "user_text"

    async def test_unconfigured_extraction(self, workflow):
        with pytest.raises(ServiceUnavailableError) as exc_info:
            await workflow.extract_event("robotics meetup")
        assert exc_info.value.status_code == 503
