"""Asyncio wake-up scheduler.

This is the default scheduler for eggtimer. Every registration is one task
on the running event loop that sleeps until an absolute monotonic due time
and then calls its callback exactly once.

┌──────────────────────────────────────────────────────────────────────────────┐
│  ASYNCIO SCHEDULER                                                            │
│                                                                               │
│   _registrations: {timer_id: _Registration(due_ms, task)}                     │
│                                                                               │
│   task body:                                                                  │
│       await clock.sleep_until(due_ms)      ◄── CancelledError if canceled    │
│       pop own registration (if still current), track task as in flight        │
│       try: await on_fire(timer_id)                                            │
│       except Exception: log SchedulerCallbackError                            │
│                                                                               │
│  Key Design Decisions:                                                        │
│  1. Absolute due time -- drift bounded by loop jitter, not by re-arming      │
│  2. Slot released before the callback -- a late cancel cannot interrupt a    │
│     firing that already started; the engine's state guard absorbs it         │
│  3. A superseded task never removes its successor's registration             │
│  4. shutdown() cancels waiting tasks but awaits in-flight callbacks          │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from eggtimer.core.clock import Clock, MonotonicClock
from eggtimer.core.errors import SchedulerCallbackError
from eggtimer.core.logging import bind_context, clear_context, get_logger

from .protocol import FireCallback, SchedulerHealth

logger = get_logger(__name__)


@dataclass
class _Registration:
    timer_id: str
    due_ms: float
    task: asyncio.Task[None]


class AsyncioScheduler:
    """One cancellable wake-up per timer id, anchored on a monotonic clock.

    Example:
        >>> scheduler = AsyncioScheduler()
        >>>
        >>> async def fired(timer_id: str) -> None:
        ...     print(f"{timer_id} is due")
        ...
        >>> scheduler.schedule("k3j9x0", 5_000, fired)
        >>> # ... later ...
        >>> await scheduler.shutdown()
    """

    name = "asyncio"

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or MonotonicClock()
        self._registrations: dict[str, _Registration] = {}
        self._fired_count = 0
        self._failed_count = 0
        self._last_drift_ms: float | None = None
        self._max_drift_ms: float | None = None
        self._shut_down = False
        self._in_flight: set[asyncio.Task[None]] = set()

    def schedule(self, timer_id: str, due_in_ms: float, on_fire: FireCallback) -> None:
        """Register a wake-up due ``due_in_ms`` from now, superseding any prior one."""
        if self._shut_down:
            logger.warning("schedule_after_shutdown", timer_id=timer_id)
            return

        self.cancel(timer_id)

        due_ms = self._clock.now_ms() + max(0.0, due_in_ms)
        task = asyncio.get_running_loop().create_task(
            self._wait_and_fire(timer_id, due_ms, on_fire),
            name=f"eggtimer-wakeup-{timer_id}",
        )
        self._registrations[timer_id] = _Registration(timer_id, due_ms, task)
        logger.debug("wake_up_scheduled", timer_id=timer_id, due_in_ms=due_in_ms, due_ms=due_ms)

    def cancel(self, timer_id: str) -> None:
        """Cancel the wake-up for ``timer_id``; no-op when none is registered."""
        registration = self._registrations.pop(timer_id, None)
        if registration is None:
            return
        registration.task.cancel()
        logger.debug("wake_up_canceled", timer_id=timer_id)

    async def shutdown(self) -> None:
        """Cancel every outstanding wake-up and wait for firing callbacks to finish."""
        self._shut_down = True
        registrations = list(self._registrations.values())
        self._registrations.clear()
        for registration in registrations:
            registration.task.cancel()
        await asyncio.gather(*(r.task for r in registrations), return_exceptions=True)

        # a callback that shuts the scheduler down cannot wait for itself
        firing = [task for task in self._in_flight if task is not asyncio.current_task()]
        if firing:
            await asyncio.gather(*firing, return_exceptions=True)
        logger.info("scheduler_shutdown", canceled=len(registrations), awaited=len(firing))

    async def _wait_and_fire(self, timer_id: str, due_ms: float, on_fire: FireCallback) -> None:
        # the task inherits the scheduling caller's context (a request id, say)
        clear_context()
        bind_context(timer_id=timer_id)

        await self._clock.sleep_until(due_ms)

        current = self._registrations.get(timer_id)
        if current is None or current.task is not asyncio.current_task():
            # superseded or canceled while the wait was resolving
            return
        del self._registrations[timer_id]
        self._in_flight.add(current.task)

        drift_ms = self._clock.now_ms() - due_ms
        self._last_drift_ms = drift_ms
        self._max_drift_ms = drift_ms if self._max_drift_ms is None else max(self._max_drift_ms, drift_ms)
        self._fired_count += 1

        try:
            await on_fire(timer_id)
        except Exception as e:
            self._failed_count += 1
            error = SchedulerCallbackError(
                f"Wake-up callback failed for timer {timer_id}", cause=e
            ).with_context(timer_id=timer_id, operation="on_fire")
            logger.error("scheduler_callback_failed", exc_info=e, **error.to_dict())
        finally:
            self._in_flight.discard(current.task)

    # ── Introspection ────────────────────────────────────────────────────

    def is_scheduled(self, timer_id: str) -> bool:
        return timer_id in self._registrations

    def due_at(self, timer_id: str) -> float | None:
        """Absolute monotonic due time of ``timer_id``'s wake-up, if any."""
        registration = self._registrations.get(timer_id)
        return registration.due_ms if registration else None

    @property
    def pending_count(self) -> int:
        return len(self._registrations)

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def get_health(self) -> SchedulerHealth:
        """Return structured health status."""
        return SchedulerHealth(
            healthy=not self._shut_down,
            scheduler=self.name,
            pending=self.pending_count,
            fired_count=self._fired_count,
            failed_count=self._failed_count,
            last_drift_ms=self._last_drift_ms,
            max_drift_ms=self._max_drift_ms,
            extra={"in_flight": len(self._in_flight)},
        )
