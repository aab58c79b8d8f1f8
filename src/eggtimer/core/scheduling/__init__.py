"""Wake-up scheduling for eggtimer.

The scheduler owns exactly one pending wake-up per active timer id and
fires a completion callback at an absolute due time computed from a
monotonic clock. It holds no timer business logic.

Quick Start::

    from eggtimer.core.scheduling import AsyncioScheduler

    scheduler = AsyncioScheduler()
    scheduler.schedule(timer_id, 25 * 60_000, engine.on_fire)
    scheduler.cancel(timer_id)
    await scheduler.shutdown()

Guardrails:
    ❌ Re-arming with ``sleep(duration)`` in a loop (overhead accumulates)
    ✅ ``clock.sleep_until(due_ms)`` with ``due_ms`` fixed at schedule time
    ❌ Validating timer state inside the scheduler
    ✅ ``TimerEngine.on_fire`` re-reads the record and no-ops if not running
"""

from __future__ import annotations

from .asyncio_backend import AsyncioScheduler
from .protocol import FireCallback, Scheduler, SchedulerHealth

__all__ = [
    "Scheduler",
    "SchedulerHealth",
    "FireCallback",
    "AsyncioScheduler",
]
