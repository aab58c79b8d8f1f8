"""eggtimer core -- the timer lifecycle engine and its collaborators.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (EggTimerError, TimerNotFoundError)
        models.py          TimerRecord, TimerView, TimerStatus
        duration.py        Duration spec parsing ("2h30m", {"ms": 500}, 1500)
        clock.py           Monotonic clocks (real + manually advanced)

    Layer 2 -- Collaborators
        stores/            TimerStore protocol + in-memory / SQLite stores
        scheduling/        Wake-up scheduler (absolute monotonic due times)
        events/            TimerEvent + in-memory event bus

    Layer 3 -- Engine
        engine.py          TimerEngine state machine

    Cross-Cutting
        logging.py         structlog configuration
        settings.py        EggTimerSettings (pydantic-settings)
"""

from eggtimer.core.clock import Clock, ManualClock, MonotonicClock
from eggtimer.core.duration import format_duration, parse_duration
from eggtimer.core.engine import TimerEngine
from eggtimer.core.errors import (
    EggTimerError,
    EngineClosedError,
    ErrorCategory,
    InvalidDurationError,
    SchedulerCallbackError,
    StoreError,
    TimerNotFoundError,
    ValidationError,
)
from eggtimer.core.events import TimerEvent, TimerEventType
from eggtimer.core.events.memory import InMemoryEventBus
from eggtimer.core.models import TimerRecord, TimerStatus, TimerView
from eggtimer.core.scheduling import AsyncioScheduler
from eggtimer.core.stores import TimerStore, create_store
from eggtimer.core.stores.memory import InMemoryTimerStore

__all__ = [
    "AsyncioScheduler",
    "Clock",
    "EggTimerError",
    "EngineClosedError",
    "ErrorCategory",
    "InMemoryEventBus",
    "InMemoryTimerStore",
    "InvalidDurationError",
    "ManualClock",
    "MonotonicClock",
    "SchedulerCallbackError",
    "StoreError",
    "TimerEngine",
    "TimerEvent",
    "TimerEventType",
    "TimerNotFoundError",
    "TimerRecord",
    "TimerStatus",
    "TimerStore",
    "TimerView",
    "ValidationError",
    "create_store",
    "format_duration",
    "parse_duration",
]
