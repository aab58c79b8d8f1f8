"""Timer lifecycle events.

Why This Package Exists
-----------------------
Observers (UIs, notifiers, audit logs) need to react when a timer is
created, paused, resumed, completed or canceled, without the engine knowing
who they are and without a slow observer holding up an engine operation.

The ``EventBus`` protocol decouples the engine (producer) from subscribers.
:class:`~eggtimer.core.events.memory.InMemoryEventBus` is the single-process
implementation.

Usage::

    from eggtimer.core.events import TimerEvent, TimerEventType
    from eggtimer.core.events.memory import InMemoryEventBus

    bus = InMemoryEventBus()

    async def on_done(event: TimerEvent) -> None:
        print(f"{event.name or event.id} finished")

    bus.subscribe(TimerEventType.TIMER_COMPLETED, on_done)
    bus.emit(TimerEvent(type=TimerEventType.TIMER_COMPLETED, id="abc"))

Modules
-------
memory      InMemoryEventBus -- per-timer ordered lanes on the running loop
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

__all__ = [
    "ALL_EVENTS",
    "TimerEvent",
    "TimerEventType",
    "EventBus",
    "EventHandler",
]

# Subscribing to this pattern receives every event type
ALL_EVENTS = "*"


class TimerEventType(str, Enum):
    """The five lifecycle transitions that produce an event."""

    TIMER_CREATED = "timer_created"
    TIMER_PAUSED = "timer_paused"
    TIMER_RESUMED = "timer_resumed"
    TIMER_COMPLETED = "timer_completed"
    TIMER_CANCELED = "timer_canceled"


# ── Event Model ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerEvent:
    """Immutable lifecycle event.

    Attributes:
        type: Which transition happened
        id: Timer id the transition applied to
        name: Timer label, if it has one
        timestamp: Wall-clock time of emission (UTC)
        data: Optional free-form payload (e.g. ``remaining_ms`` on pause)
    """

    type: TimerEventType
    id: str
    name: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] | None = None

    def matches(self, pattern: str) -> bool:
        """True if ``pattern`` is this event's type or the ``*`` wildcard."""
        if pattern == ALL_EVENTS:
            return True
        return self.type.value == pattern

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type.value,
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.name is not None:
            result["name"] = self.name
        if self.data:
            result["data"] = dict(self.data)
        return result


# ── Type Aliases ─────────────────────────────────────────────────────────

# Handlers may be plain functions or coroutine functions
EventHandler = Callable[[TimerEvent], Awaitable[None] | None]


# ── EventBus Protocol ────────────────────────────────────────────────────


@runtime_checkable
class EventBus(Protocol):
    """Protocol for event bus implementations.

    ``emit`` must not block on subscriber execution, must isolate handler
    failures from each other and from the emitter, and must preserve
    emission order for events that share a timer id.
    """

    def emit(self, event: TimerEvent) -> None:
        """Hand ``event`` to every handler subscribed to its type."""
        ...

    def subscribe(self, event_type: TimerEventType | str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type`` (or ``"*"``)."""
        ...

    def unsubscribe(self, event_type: TimerEventType | str, handler: EventHandler) -> None:
        """Remove a previously registered handler; no-op if absent."""
        ...

    async def drain(self) -> None:
        """Wait until every queued event has been delivered."""
        ...

    async def close(self) -> None:
        """Stop delivery and drop subscriptions."""
        ...
