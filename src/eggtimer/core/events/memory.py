"""
In-memory event bus implementation.

``emit`` only enqueues. Each timer id gets its own delivery lane (a deque
plus a task on the running loop) that delivers that id's events strictly in
emission order; lanes of different ids run independently, so a slow
subscriber reacting to one timer never delays another timer's events.

Within one event, handlers are called concurrently and each is isolated:
an exception is logged as ``event_handler_error`` and delivery carries on.
Handlers run with only ``timer_id`` bound in the logging context.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque

from eggtimer.core.events import TimerEvent, TimerEventType, EventHandler
from eggtimer.core.logging import bind_context, clear_context, get_logger

__all__ = ["InMemoryEventBus"]

logger = get_logger(__name__)


def _pattern(event_type: TimerEventType | str) -> str:
    return event_type.value if isinstance(event_type, TimerEventType) else event_type


class InMemoryEventBus:
    """In-process event bus with per-timer ordered, non-blocking delivery.

    Example::

        bus = InMemoryEventBus()

        def log_event(event: TimerEvent) -> None:
            print(f"Event: {event.type.value} {event.id}")

        bus.subscribe("*", log_event)
        bus.emit(TimerEvent(type=TimerEventType.TIMER_CREATED, id="abc"))
        await bus.drain()
        # Output: Event: timer_created abc
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._lanes: dict[str, deque[TimerEvent]] = {}
        self._workers: dict[str, asyncio.Task[None]] = {}
        self._closed = False

    # ── Subscriptions ────────────────────────────────────────────────────

    def subscribe(self, event_type: TimerEventType | str, handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(_pattern(event_type), [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: TimerEventType | str, handler: EventHandler) -> None:
        handlers = self._handlers.get(_pattern(event_type))
        if handlers and handler in handlers:
            handlers.remove(handler)

    # ── Publishing ───────────────────────────────────────────────────────

    def emit(self, event: TimerEvent) -> None:
        """Queue ``event`` for delivery on its timer's lane.

        Must be called from a coroutine running on the event loop; the
        lane task is created on that loop.
        """
        if self._closed:
            logger.debug("event_dropped_bus_closed", event_type=event.type.value, timer_id=event.id)
            return

        lane = self._lanes.get(event.id)
        if lane is not None:
            lane.append(event)
            return

        self._lanes[event.id] = deque([event])
        self._workers[event.id] = asyncio.get_running_loop().create_task(
            self._run_lane(event.id), name=f"eggtimer-events-{event.id}"
        )

    async def _run_lane(self, timer_id: str) -> None:
        # drop whatever the emitting caller had bound (a request id, say)
        clear_context()
        bind_context(timer_id=timer_id)
        lane = self._lanes[timer_id]
        try:
            while lane:
                await self._deliver(lane.popleft())
        finally:
            # no await between the emptiness check and removal
            self._lanes.pop(timer_id, None)
            self._workers.pop(timer_id, None)

    async def _deliver(self, event: TimerEvent) -> None:
        handlers = [
            handler
            for pattern, registered in self._handlers.items()
            if event.matches(pattern)
            for handler in registered
        ]
        if not handlers:
            return

        async def safe_call(handler: EventHandler) -> None:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "event_handler_error",
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    event_type=event.type.value,
                    timer_id=event.id,
                    error=str(e),
                )

        await asyncio.gather(*(safe_call(handler) for handler in handlers))

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait until every lane, including ones opened while waiting, is empty."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()), return_exceptions=True)

    async def close(self) -> None:
        """Stop accepting events, abandon undelivered ones, clear subscriptions."""
        self._closed = True
        workers = list(self._workers.values())
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._lanes.clear()
        self._workers.clear()
        self._handlers.clear()

    @property
    def subscription_count(self) -> int:
        """Number of registered handlers across all event types."""
        return sum(len(handlers) for handlers in self._handlers.values())

    @property
    def pending_count(self) -> int:
        """Events queued but not yet delivered."""
        return sum(len(lane) for lane in self._lanes.values())
