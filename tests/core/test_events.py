"""Tests for eggtimer.core.events -- TimerEvent, EventBus protocol, InMemoryEventBus."""

import asyncio
from datetime import UTC, datetime

import pytest
import structlog

from eggtimer.core.events import ALL_EVENTS, EventBus, TimerEvent, TimerEventType
from eggtimer.core.events.memory import InMemoryEventBus
from eggtimer.core.logging import bind_context, unbind_context


def _event(event_type=TimerEventType.TIMER_CREATED, timer_id="t1", **kwargs) -> TimerEvent:
    return TimerEvent(type=event_type, id=timer_id, **kwargs)


# ------------------------------------------------------------------ #
# Event model
# ------------------------------------------------------------------ #


class TestTimerEvent:
    def test_defaults(self):
        event = _event()
        assert event.name is None
        assert event.data is None
        assert event.timestamp.tzinfo is not None

    def test_is_immutable(self):
        event = _event()
        with pytest.raises(AttributeError):
            event.id = "other"

    def test_matches(self):
        event = _event(TimerEventType.TIMER_PAUSED)
        assert event.matches("timer_paused") is True
        assert event.matches("timer_resumed") is False
        assert event.matches(ALL_EVENTS) is True

    def test_to_dict(self):
        event = _event(
            TimerEventType.TIMER_PAUSED,
            name="tea",
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
            data={"remaining_ms": 6_000},
        )
        assert event.to_dict() == {
            "type": "timer_paused",
            "id": "t1",
            "name": "tea",
            "timestamp": "2024-01-01T00:00:00+00:00",
            "data": {"remaining_ms": 6_000},
        }

    def test_to_dict_omits_empty_fields(self):
        assert set(_event().to_dict()) == {"type", "id", "timestamp"}


# ------------------------------------------------------------------ #
# InMemoryEventBus
# ------------------------------------------------------------------ #


class TestInMemoryEventBus:
    @pytest.fixture
    def bus(self):
        return InMemoryEventBus()

    def test_satisfies_protocol(self, bus):
        assert isinstance(bus, EventBus)

    @pytest.mark.asyncio
    async def test_emit_without_subscribers(self, bus):
        bus.emit(_event())
        await bus.drain()
        assert bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_emit_does_not_run_handlers_inline(self, bus):
        received = []
        bus.subscribe(TimerEventType.TIMER_CREATED, received.append)

        bus.emit(_event())
        assert received == []

        await bus.drain()
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_subscribe_by_enum_or_string(self, bus):
        received = []
        bus.subscribe(TimerEventType.TIMER_PAUSED, received.append)
        bus.subscribe("timer_resumed", received.append)

        bus.emit(_event(TimerEventType.TIMER_PAUSED))
        bus.emit(_event(TimerEventType.TIMER_RESUMED))
        bus.emit(_event(TimerEventType.TIMER_CANCELED))
        await bus.drain()

        assert [e.type for e in received] == [
            TimerEventType.TIMER_PAUSED,
            TimerEventType.TIMER_RESUMED,
        ]

    @pytest.mark.asyncio
    async def test_wildcard_receives_everything(self, bus):
        received = []
        bus.subscribe(ALL_EVENTS, received.append)

        for event_type in TimerEventType:
            bus.emit(_event(event_type))
        await bus.drain()

        assert [e.type for e in received] == list(TimerEventType)

    @pytest.mark.asyncio
    async def test_duplicate_subscription_ignored(self, bus):
        received = []
        bus.subscribe(ALL_EVENTS, received.append)
        bus.subscribe(ALL_EVENTS, received.append)
        assert bus.subscription_count == 1

        bus.emit(_event())
        await bus.drain()
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus):
        received = []
        bus.subscribe(TimerEventType.TIMER_CREATED, received.append)
        bus.unsubscribe(TimerEventType.TIMER_CREATED, received.append)
        # unknown handler is a no-op
        bus.unsubscribe("timer_paused", received.append)

        bus.emit(_event())
        await bus.drain()
        assert received == []
        assert bus.subscription_count == 0

    @pytest.mark.asyncio
    async def test_async_handlers_awaited(self, bus):
        received = []

        async def handler(event):
            await asyncio.sleep(0)
            received.append(event.id)

        bus.subscribe(ALL_EVENTS, handler)
        bus.emit(_event())
        await bus.drain()
        assert received == ["t1"]

    @pytest.mark.asyncio
    async def test_order_preserved_per_timer(self, bus):
        received = []

        async def slow_first(event):
            # the first event takes longest; later ones must still wait for it
            if event.type is TimerEventType.TIMER_CREATED:
                for _ in range(10):
                    await asyncio.sleep(0)
            received.append(event.type)

        bus.subscribe(ALL_EVENTS, slow_first)
        sequence = [
            TimerEventType.TIMER_CREATED,
            TimerEventType.TIMER_PAUSED,
            TimerEventType.TIMER_RESUMED,
            TimerEventType.TIMER_COMPLETED,
        ]
        for event_type in sequence:
            bus.emit(_event(event_type))
        await bus.drain()

        assert received == sequence

    @pytest.mark.asyncio
    async def test_slow_handler_does_not_block_other_timers(self, bus):
        release = asyncio.Event()
        received = []

        async def handler(event):
            if event.id == "slow":
                await release.wait()
            received.append(event.id)

        bus.subscribe(ALL_EVENTS, handler)
        bus.emit(_event(timer_id="slow"))
        bus.emit(_event(timer_id="fast"))
        for _ in range(10):
            await asyncio.sleep(0)

        assert received == ["fast"]
        release.set()
        await bus.drain()
        assert received == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_handler_failure_is_isolated(self, bus):
        received = []

        def broken(event):
            raise RuntimeError("subscriber bug")

        async def broken_async(event):
            raise ValueError("async subscriber bug")

        bus.subscribe(ALL_EVENTS, broken)
        bus.subscribe(ALL_EVENTS, broken_async)
        bus.subscribe(ALL_EVENTS, received.append)

        bus.emit(_event(TimerEventType.TIMER_CREATED))
        bus.emit(_event(TimerEventType.TIMER_CANCELED))
        await bus.drain()

        assert [e.type for e in received] == [
            TimerEventType.TIMER_CREATED,
            TimerEventType.TIMER_CANCELED,
        ]

    @pytest.mark.asyncio
    async def test_events_emitted_by_handlers_are_drained(self, bus):
        received = []

        def chain(event):
            received.append(event.id)
            if event.id == "first":
                bus.emit(_event(timer_id="second"))

        bus.subscribe(ALL_EVENTS, chain)
        bus.emit(_event(timer_id="first"))
        await bus.drain()
        assert received == ["first", "second"]

    @pytest.mark.asyncio
    async def test_close_drops_later_events(self, bus):
        received = []
        bus.subscribe(ALL_EVENTS, received.append)
        await bus.close()

        bus.emit(_event())
        await bus.drain()
        assert received == []
        assert bus.subscription_count == 0

    @pytest.mark.asyncio
    async def test_handlers_do_not_inherit_emitter_context(self, bus):
        seen = []
        bus.subscribe(ALL_EVENTS, lambda event: seen.append(structlog.contextvars.get_contextvars()))

        bind_context(request_id="req-1")
        try:
            bus.emit(_event(timer_id="t7"))
        finally:
            unbind_context("request_id")
        await bus.drain()

        assert seen == [{"timer_id": "t7"}]
