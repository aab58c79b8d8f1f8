"""
Monotonic time sources.

All drift-sensitive arithmetic in eggtimer (remaining time, wake-up due
times) reads a :class:`Clock`, never the wall clock. Two implementations:

- :class:`MonotonicClock` -- ``time.monotonic()`` in milliseconds; sleeps
  with ``asyncio.sleep`` recomputed from the absolute due time on every
  wake, so loop overhead never accumulates as drift.
- :class:`ManualClock` -- simulated time that only moves when
  :meth:`ManualClock.advance` is awaited. Sleepers are released in due-time
  order, each at its own instant, which makes scheduler and engine behaviour
  deterministic under test.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Monotonic millisecond time source with an absolute-deadline sleep."""

    def now_ms(self) -> float:
        """Current monotonic time in milliseconds."""
        ...

    async def sleep_until(self, due_ms: float) -> None:
        """Suspend until ``now_ms() >= due_ms``."""
        ...


class MonotonicClock:
    """Real monotonic clock backed by :func:`time.monotonic`."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    async def sleep_until(self, due_ms: float) -> None:
        # asyncio may wake a little early; re-derive from the anchor each time
        while True:
            remaining_ms = due_ms - self.now_ms()
            if remaining_ms <= 0:
                return
            await asyncio.sleep(remaining_ms / 1000.0)


class ManualClock:
    """Simulated monotonic clock for tests.

    Time starts at ``start_ms`` and moves only through :meth:`advance`.
    After releasing each sleeper the clock yields to the event loop
    ``settle_rounds`` times so woken tasks (and whatever they await that
    does not truly suspend) run before time moves on.

    Example::

        clock = ManualClock()
        scheduler = AsyncioScheduler(clock)
        scheduler.schedule("t1", 1_000, on_fire)
        await clock.advance(1_000)   # on_fire("t1") has run
    """

    def __init__(self, start_ms: float = 0.0, settle_rounds: int = 25) -> None:
        self._now_ms = float(start_ms)
        self._settle_rounds = settle_rounds
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now_ms

    async def sleep_until(self, due_ms: float) -> None:
        if due_ms <= self._now_ms:
            await asyncio.sleep(0)
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (due_ms, next(self._seq), future))
        await future

    async def advance(self, delta_ms: float) -> None:
        """Move time forward by ``delta_ms``, waking due sleepers in order."""
        if delta_ms < 0:
            raise ValueError("a monotonic clock cannot move backwards")
        target_ms = self._now_ms + delta_ms
        while self._sleepers and self._sleepers[0][0] <= target_ms:
            due_ms, _, future = heapq.heappop(self._sleepers)
            if future.done():
                # sleeper was cancelled
                continue
            self._now_ms = max(self._now_ms, due_ms)
            future.set_result(None)
            await self.settle()
        self._now_ms = target_ms
        await self.settle()

    async def settle(self) -> None:
        """Yield to the event loop so ready tasks can run."""
        for _ in range(self._settle_rounds):
            await asyncio.sleep(0)

    @property
    def sleeper_count(self) -> int:
        """Number of sleepers still waiting (cancelled ones excluded)."""
        return sum(1 for _, _, future in self._sleepers if not future.done())


__all__ = ["Clock", "MonotonicClock", "ManualClock"]
