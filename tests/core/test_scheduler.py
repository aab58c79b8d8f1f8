"""Tests for eggtimer.core.scheduling -- AsyncioScheduler on a ManualClock."""

import asyncio

import pytest
import structlog

from eggtimer.core.clock import ManualClock
from eggtimer.core.logging import bind_context, unbind_context
from eggtimer.core.scheduling import AsyncioScheduler, Scheduler, SchedulerHealth


class FireLog:
    """Records (timer_id, fire time) for every callback invocation."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.fired: list[tuple[str, float]] = []

    async def __call__(self, timer_id: str) -> None:
        self.fired.append((timer_id, self.clock.now_ms()))

    @property
    def ids(self) -> list[str]:
        return [timer_id for timer_id, _ in self.fired]


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
async def scheduler(clock):
    scheduler = AsyncioScheduler(clock)
    yield scheduler
    await scheduler.shutdown()


@pytest.fixture
def fire_log(clock):
    return FireLog(clock)


class TestScheduleAndFire:
    def test_satisfies_protocol(self):
        assert isinstance(AsyncioScheduler(ManualClock()), Scheduler)

    @pytest.mark.asyncio
    async def test_fires_at_due_time_not_before(self, scheduler, clock, fire_log):
        scheduler.schedule("t1", 1_000, fire_log)
        assert scheduler.due_at("t1") == 1_000.0

        await clock.advance(999)
        assert fire_log.fired == []
        assert scheduler.is_scheduled("t1")

        await clock.advance(1)
        assert fire_log.fired == [("t1", 1_000.0)]
        assert not scheduler.is_scheduled("t1")

    @pytest.mark.asyncio
    async def test_fires_exactly_once(self, scheduler, clock, fire_log):
        scheduler.schedule("t1", 100, fire_log)
        await clock.advance(100)
        await clock.advance(10_000)
        assert fire_log.ids == ["t1"]

    @pytest.mark.asyncio
    async def test_due_times_fire_in_order(self, scheduler, clock, fire_log):
        scheduler.schedule("b", 200, fire_log)
        scheduler.schedule("a", 100, fire_log)
        scheduler.schedule("c", 300, fire_log)
        await clock.settle()
        await clock.advance(1_000)
        assert fire_log.fired == [("a", 100.0), ("b", 200.0), ("c", 300.0)]

    @pytest.mark.asyncio
    async def test_zero_and_negative_delays_fire_promptly(self, scheduler, clock, fire_log):
        scheduler.schedule("now", 0, fire_log)
        scheduler.schedule("past", -50, fire_log)
        await clock.settle()
        assert sorted(fire_log.ids) == ["now", "past"]

    @pytest.mark.asyncio
    async def test_schedule_supersedes_previous_registration(self, scheduler, clock, fire_log):
        scheduler.schedule("t1", 100, fire_log)
        scheduler.schedule("t1", 500, fire_log)
        assert scheduler.pending_count == 1

        await clock.advance(100)
        assert fire_log.fired == []

        await clock.advance(400)
        assert fire_log.fired == [("t1", 500.0)]


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_prevents_firing(self, scheduler, clock, fire_log):
        scheduler.schedule("t1", 100, fire_log)
        scheduler.cancel("t1")
        await clock.advance(1_000)

        assert fire_log.fired == []
        assert scheduler.pending_count == 0
        assert clock.sleeper_count == 0

    @pytest.mark.asyncio
    async def test_cancel_unknown_is_noop(self, scheduler):
        scheduler.cancel("missing")
        assert scheduler.pending_count == 0

    @pytest.mark.asyncio
    async def test_cancel_one_leaves_others(self, scheduler, clock, fire_log):
        scheduler.schedule("keep", 100, fire_log)
        scheduler.schedule("drop", 100, fire_log)
        scheduler.cancel("drop")
        await clock.advance(100)
        assert fire_log.ids == ["keep"]


class TestCallbackFailures:
    @pytest.mark.asyncio
    async def test_callback_exception_is_contained(self, scheduler, clock, fire_log):
        async def broken(timer_id: str) -> None:
            raise RuntimeError("boom")

        scheduler.schedule("bad", 100, broken)
        scheduler.schedule("good", 200, fire_log)
        await clock.advance(200)

        assert fire_log.ids == ["good"]
        health = scheduler.get_health()
        assert health.fired_count == 2
        assert health.failed_count == 1
        assert health.healthy is True


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending(self, clock, fire_log):
        scheduler = AsyncioScheduler(clock)
        scheduler.schedule("t1", 100, fire_log)
        scheduler.schedule("t2", 200, fire_log)

        await scheduler.shutdown()
        await clock.advance(1_000)

        assert fire_log.fired == []
        assert scheduler.pending_count == 0

    @pytest.mark.asyncio
    async def test_schedule_after_shutdown_is_ignored(self, clock, fire_log):
        scheduler = AsyncioScheduler(clock)
        await scheduler.shutdown()

        scheduler.schedule("t1", 100, fire_log)
        await clock.advance(100)

        assert fire_log.fired == []
        assert scheduler.get_health().healthy is False

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_firing_callback(self, clock):
        scheduler = AsyncioScheduler(clock)
        release = asyncio.Event()
        finished: list[str] = []

        async def slow(timer_id: str) -> None:
            await release.wait()
            finished.append(timer_id)

        scheduler.schedule("t1", 100, slow)
        await clock.advance(100)
        assert scheduler.get_health().extra["in_flight"] == 1

        stopping = asyncio.create_task(scheduler.shutdown())
        await clock.settle()
        assert not stopping.done()

        release.set()
        await stopping
        assert finished == ["t1"]
        assert scheduler.get_health().extra["in_flight"] == 0

    @pytest.mark.asyncio
    async def test_shutdown_from_callback_does_not_wait_on_itself(self, clock):
        scheduler = AsyncioScheduler(clock)
        finished: list[str] = []

        async def stop(timer_id: str) -> None:
            await scheduler.shutdown()
            finished.append(timer_id)

        scheduler.schedule("t1", 100, stop)
        await clock.advance(100)

        assert finished == ["t1"]
        assert scheduler.get_health().healthy is False


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_counters_and_drift(self, scheduler, clock, fire_log):
        assert scheduler.get_health() == SchedulerHealth(
            healthy=True, scheduler="asyncio", extra={"in_flight": 0}
        )

        scheduler.schedule("t1", 100, fire_log)
        scheduler.schedule("t2", 5_000, fire_log)
        await clock.advance(100)

        health = scheduler.health()
        assert health["scheduler"] == "asyncio"
        assert health["pending"] == 1
        assert health["fired_count"] == 1
        assert health["last_drift_ms"] == 0.0
        assert health["max_drift_ms"] == 0.0


class TestLogContext:
    @pytest.mark.asyncio
    async def test_callback_does_not_inherit_caller_context(self, scheduler, clock):
        seen: list[dict] = []

        async def capture(timer_id: str) -> None:
            seen.append(structlog.contextvars.get_contextvars())

        bind_context(request_id="req-1")
        try:
            scheduler.schedule("t1", 100, capture)
        finally:
            unbind_context("request_id")
        await clock.advance(100)

        assert seen == [{"timer_id": "t1"}]
