"""
Timer engine: the lifecycle state machine.

Manifesto:
    A countdown timer is only trustworthy if every transition is validated
    against the state it is leaving, persisted before anyone hears about it,
    and repeatable without side effects. The engine is the single writer of
    timer records; the store, the scheduler and the event bus are
    collaborators it drives.

Architecture:
    ::

        caller ──► TimerEngine ──► TimerStore   (persist every transition)
                        │     ──► Scheduler    (one wake-up per running timer)
                        │     ──► EventBus     (one event per transition)
                        ▲
                        └──────── Scheduler.on_fire(id)

    State machine::

                    create
                      │
                      ▼
        ┌──────── RUNNING ◄──── resume ────┐
        │           │  │                   │
        │   on_fire │  └──── pause ────► PAUSED
        │           ▼                      │
        │       COMPLETED                  │
        │                                  │
        └──── cancel ──► CANCELED ◄─ cancel┘

Guardrails:
    ❌ Raising on pause/resume/cancel of a missing or terminal timer
    ✅ Status-guarded no-op (returns ``False``, emits nothing)
    ❌ Caching records between operations
    ✅ Every operation re-reads the store under the timer's lock
    ❌ Emitting before the store write succeeded
    ✅ ``put`` first; a ``StoreError`` aborts the operation and propagates
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from eggtimer.core.clock import Clock, MonotonicClock
from eggtimer.core.duration import parse_duration
from eggtimer.core.errors import EngineClosedError, TimerNotFoundError, ValidationError
from eggtimer.core.events import EventBus, TimerEvent, TimerEventType
from eggtimer.core.logging import LogContext, get_logger
from eggtimer.core.models import MAX_NAME_LENGTH, TimerRecord, TimerStatus, TimerView, utcnow
from eggtimer.core.scheduling import Scheduler
from eggtimer.core.stores import TimerStore

__all__ = ["TimerEngine"]

logger = get_logger(__name__)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def _new_timer_id() -> str:
    return uuid.uuid4().hex[:16]


class TimerEngine:
    """Creates, pauses, resumes, cancels and completes timers.

    Every public operation on one timer id runs under that id's lock, so
    read-decide-write never interleaves for the same timer; operations on
    different ids never wait on each other.

    Example::

        engine = TimerEngine(InMemoryTimerStore(), AsyncioScheduler(), InMemoryEventBus())
        timer_id = await engine.create("2h30m", name="bread")
        await engine.pause(timer_id)
        view = await engine.get(timer_id)   # view.remaining_ms is frozen
        await engine.resume(timer_id)
    """

    def __init__(
        self,
        store: TimerStore,
        scheduler: Scheduler,
        event_bus: EventBus,
        clock: Clock | None = None,
        *,
        wall_clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_timer_id,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._event_bus = event_bus
        self._clock = clock or MonotonicClock()
        self._wall_clock = wall_clock
        self._id_factory = id_factory
        self._locks: dict[str, _LockEntry] = {}
        self._closed = False

    # ── Public operations ────────────────────────────────────────────────

    async def create(self, duration: Any, name: str | None = None) -> str:
        """Start a new running timer and return its id.

        Raises:
            InvalidDurationError: ``duration`` does not parse or is zero
            ValidationError: ``name`` is longer than 64 characters
            StoreError: the record could not be persisted
        """
        self._ensure_open("create")
        duration_ms = parse_duration(duration)
        if name is not None and len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Timer name must be at most {MAX_NAME_LENGTH} characters"
            ).with_context(operation="create")

        timer_id = self._id_factory()
        async with self._serialized(timer_id, "create"):
            now_wall = self._wall_clock()
            record = TimerRecord(
                id=timer_id,
                name=name,
                duration_ms=duration_ms,
                start_monotonic_ms=self._clock.now_ms(),
                remaining_ms=duration_ms,
                status=TimerStatus.RUNNING,
                created_at=now_wall,
                started_at=now_wall,
            )
            await self._store.put(record)
            self._scheduler.schedule(timer_id, duration_ms, self.on_fire)
            self._emit(TimerEventType.TIMER_CREATED, record, duration_ms=duration_ms)

        logger.info("timer_created", timer_id=timer_id, name=name, duration_ms=duration_ms)
        return timer_id

    async def get(self, timer_id: str) -> TimerView:
        """Return the timer's public view with a live ``remaining_ms``.

        Raises:
            TimerNotFoundError: no timer with this id
        """
        record = await self._store.get(timer_id)
        if record is None:
            raise TimerNotFoundError(timer_id).with_context(operation="get")
        return record.to_view(self._clock.now_ms())

    async def list(self) -> list[TimerView]:
        """Return every known timer, running ones with live ``remaining_ms``."""
        records = await self._store.list()
        now_ms = self._clock.now_ms()
        return [record.to_view(now_ms) for record in records]

    async def pause(self, timer_id: str) -> bool:
        """Freeze a running timer. Returns ``False`` (no-op) unless it was running."""
        self._ensure_open("pause")
        async with self._serialized(timer_id, "pause"):
            record = await self._store.get(timer_id)
            if record is None or record.status is not TimerStatus.RUNNING:
                logger.debug("pause_ignored", timer_id=timer_id, status=_status_of(record))
                return False

            record.remaining_ms = record.remaining_at(self._clock.now_ms())
            record.status = TimerStatus.PAUSED
            await self._store.put(record)
            self._scheduler.cancel(timer_id)
            self._emit(TimerEventType.TIMER_PAUSED, record, remaining_ms=record.remaining_ms)

        logger.info("timer_paused", timer_id=timer_id, remaining_ms=record.remaining_ms)
        return True

    async def resume(self, timer_id: str) -> bool:
        """Restart a paused timer from its snapshot. No-op unless paused."""
        self._ensure_open("resume")
        async with self._serialized(timer_id, "resume"):
            record = await self._store.get(timer_id)
            if record is None or record.status is not TimerStatus.PAUSED:
                logger.debug("resume_ignored", timer_id=timer_id, status=_status_of(record))
                return False

            # the snapshot becomes the full length of the new segment
            record.duration_ms = record.remaining_ms
            record.start_monotonic_ms = self._clock.now_ms()
            record.started_at = self._wall_clock()
            record.status = TimerStatus.RUNNING
            await self._store.put(record)
            self._scheduler.schedule(timer_id, record.remaining_ms, self.on_fire)
            self._emit(TimerEventType.TIMER_RESUMED, record, remaining_ms=record.remaining_ms)

        logger.info("timer_resumed", timer_id=timer_id, remaining_ms=record.remaining_ms)
        return True

    async def cancel(self, timer_id: str) -> bool:
        """Cancel a running or paused timer. No-op if missing or terminal."""
        self._ensure_open("cancel")
        async with self._serialized(timer_id, "cancel"):
            record = await self._store.get(timer_id)
            if record is None or record.status.is_terminal:
                logger.debug("cancel_ignored", timer_id=timer_id, status=_status_of(record))
                return False

            record.remaining_ms = record.remaining_at(self._clock.now_ms())
            record.status = TimerStatus.CANCELED
            await self._store.put(record)
            self._scheduler.cancel(timer_id)
            self._emit(TimerEventType.TIMER_CANCELED, record, remaining_ms=record.remaining_ms)

        logger.info("timer_canceled", timer_id=timer_id)
        return True

    async def on_fire(self, timer_id: str) -> None:
        """Scheduler callback: complete the timer if it is still running.

        A firing that lost a race to pause/cancel, or a repeated firing,
        finds a non-running record and does nothing.
        """
        async with self._serialized(timer_id, "on_fire"):
            record = await self._store.get(timer_id)
            if record is None or record.status is not TimerStatus.RUNNING:
                logger.debug("fire_ignored", timer_id=timer_id, status=_status_of(record))
                return

            record.status = TimerStatus.COMPLETED
            record.remaining_ms = 0
            await self._store.put(record)
            self._emit(TimerEventType.TIMER_COMPLETED, record)

        logger.info("timer_completed", timer_id=timer_id, name=record.name)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def rehydrate(self) -> int:
        """Re-register wake-ups for running timers found in the store.

        Meant for startup with a durable store. Monotonic anchors from a
        previous process are meaningless, so remaining time is derived from
        the wall-clock ``started_at`` of the current segment. Timers whose
        time ran out while the process was down are completed immediately.
        Paused timers need nothing. No events are emitted for re-anchoring.

        Returns:
            Number of timers re-registered with the scheduler.
        """
        self._ensure_open("rehydrate")
        rescheduled = 0
        overdue: list[str] = []

        for stored in await self._store.list():
            if stored.status is not TimerStatus.RUNNING:
                continue
            async with self._serialized(stored.id, "rehydrate"):
                record = await self._store.get(stored.id)
                if record is None or record.status is not TimerStatus.RUNNING:
                    continue

                now_wall = self._wall_clock()
                elapsed_ms = (now_wall - record.started_at).total_seconds() * 1000.0
                remaining_ms = max(0, int(record.duration_ms - elapsed_ms))
                if remaining_ms == 0:
                    overdue.append(record.id)
                    continue

                record.duration_ms = remaining_ms
                record.remaining_ms = remaining_ms
                record.start_monotonic_ms = self._clock.now_ms()
                record.started_at = now_wall
                await self._store.put(record)
                self._scheduler.schedule(record.id, remaining_ms, self.on_fire)
                rescheduled += 1

        for timer_id in overdue:
            await self.on_fire(timer_id)

        logger.info("timers_rehydrated", rescheduled=rescheduled, completed_overdue=len(overdue))
        return rescheduled

    async def shutdown(self) -> None:
        """Stop accepting mutations, cancel wake-ups, flush events, close the store.

        A firing already in flight completes before the store closes. Nothing
        guarantees a ``timer_completed`` event for a timer due exactly at
        shutdown.
        """
        if self._closed:
            return
        self._closed = True
        logger.info("engine_shutdown_started")
        await self._scheduler.shutdown()
        await self._event_bus.drain()
        await self._event_bus.close()
        await self._store.close()
        logger.info("engine_shutdown_complete")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def scheduler_health(self) -> dict[str, Any]:
        return self._scheduler.health()

    # ── Helpers ──────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _serialized(self, timer_id: str, operation: str) -> AsyncIterator[None]:
        """Hold ``timer_id``'s lock; the lock is dropped once nobody uses it.

        Logs emitted inside the block carry ``timer_id`` and ``operation``.
        """
        entry = self._locks.get(timer_id)
        if entry is None:
            entry = self._locks[timer_id] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock, LogContext(timer_id=timer_id, operation=operation):
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[timer_id]

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise EngineClosedError("Timer engine is shut down").with_context(operation=operation)

    def _emit(self, event_type: TimerEventType, record: TimerRecord, **data: Any) -> None:
        self._event_bus.emit(
            TimerEvent(
                type=event_type,
                id=record.id,
                name=record.name,
                timestamp=self._wall_clock(),
                data=data or None,
            )
        )


def _status_of(record: TimerRecord | None) -> str | None:
    return record.status.value if record else None
