"""
Shared pytest fixtures for eggtimer tests.

This module provides:
- A ``ManualClock`` so scheduler and engine tests never wait on real time
- A controllable wall clock for rehydration tests
- A fully-wired ``TimerEngine`` plus a recorder of every event it emits

Usage:
    async def test_pause(engine, clock, events):
        timer_id = await engine.create(10_000)
        await clock.advance(4_000)
        await engine.pause(timer_id)
"""

from __future__ import annotations

from typing import Any

import pytest

from eggtimer.core.clock import ManualClock
from eggtimer.core.engine import TimerEngine
from eggtimer.core.events import ALL_EVENTS
from eggtimer.core.events.memory import InMemoryEventBus
from eggtimer.core.scheduling import AsyncioScheduler
from eggtimer.core.stores.memory import InMemoryTimerStore
from tests._support import EventRecorder, FakeWallClock, YieldingStore


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def store() -> InMemoryTimerStore:
    # suspends on every call so lock contention is real
    return YieldingStore()


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def events(bus: InMemoryEventBus) -> EventRecorder:
    recorder = EventRecorder()
    bus.subscribe(ALL_EVENTS, recorder)
    return recorder


@pytest.fixture
def scheduler(clock: ManualClock) -> AsyncioScheduler:
    return AsyncioScheduler(clock)


@pytest.fixture
async def engine(
    store: InMemoryTimerStore,
    scheduler: AsyncioScheduler,
    bus: InMemoryEventBus,
    clock: ManualClock,
    wall_clock: FakeWallClock,
    events: EventRecorder,
) -> Any:
    engine = TimerEngine(
        store=store,
        scheduler=scheduler,
        event_bus=bus,
        clock=clock,
        wall_clock=wall_clock,
    )
    yield engine
    await engine.shutdown()
