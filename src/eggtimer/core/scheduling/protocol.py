"""Scheduler protocol.

┌──────────────────────────────────────────────────────────────────────────────┐
│  WAKE-UP SCHEDULER PROTOCOL                                                   │
│                                                                               │
│  A scheduler is a thin, cancellable "call me back at this instant"           │
│  primitive. It knows nothing about timer states; the engine re-validates    │
│  on every firing.                                                            │
│                                                                               │
│   schedule(id, due_in_ms, on_fire)                                            │
│        │                                                                      │
│        ▼                                                                      │
│   due_ms = clock.now_ms() + due_in_ms      ◄── anchored once, never re-added │
│        │                                                                      │
│        ▼                                                                      │
│   ┌────────────────────┐   sleep_until(due_ms)   ┌──────────────────────┐    │
│   │ registration[id]   │ ──────────────────────► │ release slot         │    │
│   │ (supersedes prior) │                         │ await on_fire(id)    │    │
│   └────────────────────┘                         └──────────────────────┘    │
│        ▲                                                                      │
│        │ cancel(id) / shutdown()                                              │
│                                                                               │
│  Responsibility Split:                                                        │
│  - Scheduler: timing, supersession, cancellation, callback isolation         │
│  - Engine: deciding whether a firing still means "completed"                 │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

FireCallback = Callable[[str], Awaitable[None]]


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for wake-up schedulers.

    Implementations:
        - AsyncioScheduler: one task per registration on the running loop
    """

    def schedule(self, timer_id: str, due_in_ms: float, on_fire: FireCallback) -> None:
        """Register a wake-up for ``timer_id`` due ``due_in_ms`` from now.

        Any existing registration for the same id is canceled first.
        """
        ...

    def cancel(self, timer_id: str) -> None:
        """Cancel the outstanding wake-up for ``timer_id``, if any."""
        ...

    async def shutdown(self) -> None:
        """Cancel every outstanding wake-up."""
        ...

    def health(self) -> dict[str, Any]:
        """Return scheduler health (pending count, fire counters, drift)."""
        ...


@dataclass
class SchedulerHealth:
    """Structured scheduler health response."""

    healthy: bool
    scheduler: str
    pending: int = 0
    fired_count: int = 0
    failed_count: int = 0
    last_drift_ms: float | None = None
    max_drift_ms: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "healthy": self.healthy,
            "scheduler": self.scheduler,
            "pending": self.pending,
            "fired_count": self.fired_count,
            "failed_count": self.failed_count,
            "last_drift_ms": self.last_drift_ms,
            "max_drift_ms": self.max_drift_ms,
            **self.extra,
        }
