"""
Test doubles shared across eggtimer tests.

These are plain classes rather than fixtures so tests that need more than
one engine (restart, failure injection) can build them directly.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

from eggtimer.core.errors import StoreError
from eggtimer.core.events import TimerEvent, TimerEventType
from eggtimer.core.models import TimerRecord
from eggtimer.core.stores.memory import InMemoryTimerStore


class FakeWallClock:
    """Callable wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += timedelta(milliseconds=ms)


class YieldingStore(InMemoryTimerStore):
    """Memory store that suspends on every call, like a real I/O backend."""

    async def get(self, timer_id: str) -> TimerRecord | None:
        await asyncio.sleep(0)
        return await super().get(timer_id)

    async def put(self, record: TimerRecord) -> None:
        await asyncio.sleep(0)
        await super().put(record)


class FailingStore(InMemoryTimerStore):
    """Memory store whose writes raise ``StoreError`` once armed."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_puts = False

    async def put(self, record: TimerRecord) -> None:
        if self.fail_puts:
            raise StoreError("disk full").with_context(operation="put", timer_id=record.id)
        await super().put(record)


class GatedStore(InMemoryTimerStore):
    """Memory store whose writes wait on ``gate`` once one is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate: asyncio.Event | None = None

    async def put(self, record: TimerRecord) -> None:
        if self.gate is not None:
            await self.gate.wait()
        await super().put(record)


class EventRecorder:
    """Wildcard subscriber that keeps every delivered event."""

    def __init__(self) -> None:
        self.events: list[TimerEvent] = []

    def __call__(self, event: TimerEvent) -> None:
        self.events.append(event)

    def types(self, timer_id: str | None = None) -> list[TimerEventType]:
        return [e.type for e in self.events if timer_id is None or e.id == timer_id]

    def of_type(self, event_type: TimerEventType) -> list[TimerEvent]:
        return [e for e in self.events if e.type is event_type]


__all__ = ["EventRecorder", "FailingStore", "FakeWallClock", "GatedStore", "YieldingStore"]
