"""Occupancy ledger: blocking, releasing and conflict lookup."""

import asyncio

from eventsync.occupancy import OccupancyLedger
from eventsync.timeslots import TimeSlot


class TestBlockAndRelease:

    async def test_block_marks_slot_occupied(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00", request_id="req-1")

        assert await ledger.is_occupied("main-hall", "2026-01-05", "14:00-16:00")
        assert not await ledger.is_occupied("main-hall", "2026-01-06", "14:00-16:00")
        assert not await ledger.is_occupied("seminar-room", "2026-01-05", "14:00-16:00")

    async def test_block_is_idempotent(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")

        assert len(await ledger.occupied_slots("main-hall", "2026-01-05")) == 1

    async def test_release_frees_slot(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")

        assert await ledger.release("main-hall", "2026-01-05", "14:00-16:00")
        assert not await ledger.is_occupied("main-hall", "2026-01-05", "14:00-16:00")
        assert await ledger.occupied_slots("main-hall") == []

    async def test_releasing_a_free_slot_reports_nothing_released(self, catalog, ledger):
        assert not await ledger.release("main-hall", "2026-01-05", "14:00-16:00")

    async def test_release_for_another_request_keeps_block(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00", request_id="req-1")

        assert not await ledger.release("main-hall", "2026-01-05", "14:00-16:00", request_id="req-2")
        assert await ledger.is_occupied("main-hall", "2026-01-05", "14:00-16:00")


class TestLocking:

    async def test_sqlite_store_serializes_writers(self, ledger):
        order = []

        async def hold(venue_id):
            async with ledger.lock(venue_id, "2026-01-05"):
                order.append(f"{venue_id}:in")
                await asyncio.sleep(0.01)
                order.append(f"{venue_id}:out")

        await asyncio.gather(hold("main-hall"), hold("seminar-room"))

        assert order == ["main-hall:in", "main-hall:out", "seminar-room:in", "seminar-room:out"]

    async def test_other_stores_only_serialize_per_venue_day(self, db):
        ledger = OccupancyLedger(db, serialize_writes=False)
        order = []

        async def hold(venue_id):
            async with ledger.lock(venue_id, "2026-01-05"):
                order.append(f"{venue_id}:in")
                await asyncio.sleep(0.01)
                order.append(f"{venue_id}:out")

        await asyncio.gather(hold("main-hall"), hold("seminar-room"))

        assert order[:2] == ["main-hall:in", "seminar-room:in"]

    async def test_released_locks_are_forgotten(self, ledger):
        async with ledger.lock("main-hall", "2026-01-05"):
            assert ledger.held_keys == 1
        assert ledger.held_keys == 0


class TestConflicts:

    async def test_overlapping_slot_conflicts(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")

        conflicts = await ledger.find_conflicts("main-hall", TimeSlot.from_start("2026-01-05", "15:00", 2))

        assert [slot.key for slot in conflicts] == ["14:00-16:00"]

    async def test_touching_slot_does_not_conflict(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")

        assert await ledger.find_conflicts("main-hall", TimeSlot.from_start("2026-01-05", "16:00", 1)) == []
        assert await ledger.find_conflicts("main-hall", TimeSlot.from_start("2026-01-05", "12:00", 2)) == []

    async def test_other_days_and_venues_are_ignored(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")
        slot = TimeSlot.from_start("2026-01-06", "14:00", 2)

        assert await ledger.find_conflicts("main-hall", slot) == []
        assert await ledger.find_conflicts("seminar-room", TimeSlot.from_start("2026-01-05", "14:00", 2)) == []

    async def test_slots_grouped_by_venue_in_time_order(self, catalog, ledger):
        await ledger.block("main-hall", "2026-01-05", "14:00-16:00")
        await ledger.block("main-hall", "2026-01-05", "09:00-10:30")

        booked = await ledger.occupied_slots_by_venue(["main-hall", "board-room"])

        assert [slot.key for slot in booked["main-hall"]] == ["09:00-10:30", "14:00-16:00"]
        assert booked["board-room"] == []
