"""
Tests for the conversation state store and the state model.

These tests verify:
1. Sessions are initialized lazily, never an error on unknown ids
2. TTL expiry and the session cap bound memory
3. compare_and_set rejects stale writes
4. The per-session lock removes the lost-update race
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from engine.planner import advance_state
from engine.state import CollectedInfo, ConversationState, Phase
from engine.store import InMemoryConversationStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryConversationStore(ttl=timedelta(minutes=30), max_sessions=3, clock=clock)


class TestLifecycle:

    def test_initialize_state(self, store):
        state = store.initialize("test-session")

        assert state.phase == Phase.GREETING
        assert state.collected_info == CollectedInfo()
        assert state.questions_asked == []
        assert state.is_complete is False
        assert state.next_question_priority == 1

    def test_get_auto_initializes(self, store):
        assert "new-session" not in store
        state = store.get("new-session")
        assert state.phase == Phase.GREETING
        assert "new-session" in store

    def test_get_returns_existing(self, store):
        initial = store.initialize("test-session")
        assert store.get("test-session") == initial

    def test_update_then_get(self, store):
        store.initialize("test-session")
        updated = ConversationState(
            phase=Phase.DISCOVERY,
            collected_info=CollectedInfo(duration="7 jours"),
            questions_asked=["greeting"],
            next_question_priority=2,
        )
        store.update("test-session", updated)

        retrieved = store.get("test-session")
        assert retrieved.phase == Phase.DISCOVERY
        assert retrieved.collected_info.duration == "7 jours"
        assert retrieved.questions_asked == ["greeting"]
        assert retrieved.version == 1

    def test_sessions_are_independent(self, store):
        store.update("a", ConversationState(phase=Phase.PLANNING))
        assert store.get("b").phase == Phase.GREETING
        assert store.get("a").phase == Phase.PLANNING

    def test_evict(self, store):
        store.get("test-session")
        assert store.evict("test-session") is True
        assert store.evict("test-session") is False
        assert "test-session" not in store


class TestBounds:

    def test_expired_session_restarts(self, store, clock):
        store.update("s1", ConversationState(phase=Phase.REFINEMENT))
        clock.advance(minutes=31)
        assert store.get("s1").phase == Phase.GREETING

    def test_activity_keeps_session_alive(self, store, clock):
        store.update("s1", ConversationState(phase=Phase.REFINEMENT))
        clock.advance(minutes=20)
        store.update("s1", store.get("s1"))
        clock.advance(minutes=20)
        assert store.get("s1").phase == Phase.REFINEMENT

    def test_oldest_session_evicted_when_full(self, store, clock):
        for session_id in ("s1", "s2", "s3"):
            store.update(session_id, ConversationState(phase=Phase.DISCOVERY))
            clock.advance(seconds=1)

        store.update("s4", ConversationState(phase=Phase.DISCOVERY))

        assert len(store) == 3
        assert "s1" not in store
        assert "s4" in store


class TestCompareAndSet:

    def test_write_with_current_version(self, store):
        state = store.get("s1")
        assert store.compare_and_set("s1", state.version, replace(state, phase=Phase.DISCOVERY))
        assert store.get("s1").version == state.version + 1

    def test_stale_write_rejected(self, store):
        state = store.get("s1")
        store.update("s1", replace(state, phase=Phase.DISCOVERY))

        assert not store.compare_and_set("s1", state.version, replace(state, phase=Phase.PLANNING))
        assert store.get("s1").phase == Phase.DISCOVERY


class TestSessionLock:

    @pytest.mark.asyncio
    async def test_concurrent_turns_do_not_lose_updates(self, store):
        async def turn(message: str):
            async with store.lock("s1"):
                state = store.get("s1")
                await asyncio.sleep(0)
                store.update("s1", advance_state(state, message).state)

        await asyncio.gather(
            turn("Nous partons 10 jours"),
            turn("Nous sommes 2 personnes"),
        )

        state = store.get("s1")
        assert len(state.questions_asked) == 2
        assert state.collected_info.duration == "10 jours"
        assert state.collected_info.travelers == "2 personnes"

    @pytest.mark.asyncio
    async def test_locks_are_per_session(self, store):
        async with store.lock("a"):
            await asyncio.wait_for(self._enter(store, "b"), timeout=1)

    @pytest.mark.asyncio
    async def test_evict_mid_turn_keeps_turns_serialized(self, store):
        """A turn arriving after a reset still waits for the queued ones."""
        inside = 0
        max_inside = 0
        first_entered = asyncio.Event()
        release_first = asyncio.Event()

        async def turn(hold: bool = False):
            nonlocal inside, max_inside
            async with store.lock("s1"):
                inside += 1
                max_inside = max(max_inside, inside)
                if hold:
                    first_entered.set()
                    await release_first.wait()
                await asyncio.sleep(0)
                inside -= 1

        first = asyncio.create_task(turn(hold=True))
        await first_entered.wait()
        queued = asyncio.create_task(turn())
        await asyncio.sleep(0)

        store.evict("s1")
        late = asyncio.create_task(turn())
        await asyncio.sleep(0)
        release_first.set()
        await asyncio.gather(first, queued, late)

        assert max_inside == 1

    @pytest.mark.asyncio
    async def test_lock_released_after_last_turn(self, store):
        async with store.lock("s1"):
            assert "s1" in store._locks
        assert "s1" not in store._locks

    @pytest.mark.asyncio
    async def test_bounds_enforcement_keeps_held_lock(self, store, clock):
        async with store.lock("s1"):
            store.update("s1", ConversationState())
            for session_id in ("s2", "s3", "s4"):
                clock.advance(seconds=1)
                store.update(session_id, ConversationState())
            assert "s1" not in store
            assert "s1" in store._locks

    @staticmethod
    async def _enter(store, session_id):
        async with store.lock(session_id):
            return True


class TestCollectedInfoWire:

    def test_to_dict_omits_empty_fields(self):
        info = CollectedInfo(
            duration="7 jours",
            interests=["culture"],
            specific_destinations=["Dakar"],
            travel_style="confort",
        )
        assert info.to_dict() == {
            "duration": "7 jours",
            "interests": ["culture"],
            "specificDestinations": ["Dakar"],
            "travelStyle": "confort",
        }

    def test_from_dict_accepts_wire_and_field_names(self):
        info = CollectedInfo.from_dict({
            "duration": "7 jours",
            "specificDestinations": ["Dakar"],
            "travel_style": "mixte",
            "unknown": "ignored",
        })
        assert info == CollectedInfo(duration="7 jours", specific_destinations=["Dakar"], travel_style="mixte")

    def test_from_dict_drops_values_outside_vocabularies(self):
        info = CollectedInfo.from_dict({
            "interests": ["culture", "shopping", "nature"],
            "travelStyle": "croisière",
        })
        assert info.interests == ["culture", "nature"]
        assert info.travel_style is None

    def test_filled_slots(self):
        info = CollectedInfo(duration="7 jours", travelers="", interests=[])
        assert info.filled_slots() == ["duration"]
