"""
Timer record and its public projection.

:class:`TimerRecord` is what the store persists; the engine is its only
writer. :class:`TimerView` is what callers see: the same fields minus the
internal monotonic anchor, with ``remaining_ms`` recomputed live for running
timers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

MAX_NAME_LENGTH = 64


class TimerStatus(str, Enum):
    """Lifecycle states of a timer."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (TimerStatus.COMPLETED, TimerStatus.CANCELED)


TERMINAL_STATUSES = frozenset({TimerStatus.COMPLETED, TimerStatus.CANCELED})


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class TimerRecord:
    """Persisted state of one timer.

    Attributes:
        id: Opaque unique id, assigned at creation
        duration_ms: Length of the current run segment
        start_monotonic_ms: Monotonic instant the current segment began
        remaining_ms: Time left; authoritative only while paused
        status: Lifecycle state
        name: Optional user label (<= 64 chars)
        created_at: Wall-clock creation time, informational only
        started_at: Wall-clock instant the current segment began; only
            rehydration reads it, because monotonic anchors do not
            survive a restart
    """

    id: str
    duration_ms: int
    start_monotonic_ms: float
    remaining_ms: int
    status: TimerStatus
    name: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    started_at: datetime = field(default_factory=utcnow)

    def copy(self) -> TimerRecord:
        return replace(self)

    def remaining_at(self, now_ms: float) -> int:
        """Time left at monotonic instant ``now_ms``.

        Only running timers count down; every other status returns the
        stored snapshot.
        """
        if self.status is not TimerStatus.RUNNING:
            return self.remaining_ms
        elapsed_ms = now_ms - self.start_monotonic_ms
        return max(0, int(self.duration_ms - elapsed_ms))

    def to_view(self, now_ms: float) -> TimerView:
        return TimerView(
            id=self.id,
            name=self.name,
            duration_ms=self.duration_ms,
            remaining_ms=self.remaining_at(now_ms),
            status=self.status,
            created_at=self.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        data["started_at"] = self.started_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerRecord:
        return cls(
            id=data["id"],
            name=data.get("name"),
            duration_ms=int(data["duration_ms"]),
            start_monotonic_ms=float(data["start_monotonic_ms"]),
            remaining_ms=int(data["remaining_ms"]),
            status=TimerStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            started_at=datetime.fromisoformat(data["started_at"]),
        )


@dataclass(frozen=True)
class TimerView:
    """Public projection of a timer (no monotonic anchor)."""

    id: str
    name: str | None
    duration_ms: int
    remaining_ms: int
    status: TimerStatus
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration_ms": self.duration_ms,
            "remaining_ms": self.remaining_ms,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }


__all__ = [
    "MAX_NAME_LENGTH",
    "TERMINAL_STATUSES",
    "TimerRecord",
    "TimerStatus",
    "TimerView",
    "utcnow",
]
