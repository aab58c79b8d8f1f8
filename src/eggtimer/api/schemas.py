"""
API schemas -- request bodies, timer responses and RFC 7807 errors.

Every error response is a :class:`ProblemDetail`; timer responses never
expose the internal monotonic anchor.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from eggtimer.core.models import MAX_NAME_LENGTH, TimerStatus, TimerView

_START_TIME = time.monotonic()


# ── Requests ─────────────────────────────────────────────────────────────


class DurationMs(BaseModel):
    """Structured duration: ``{"ms": 500}``."""

    model_config = ConfigDict(extra="forbid")

    ms: int = Field(gt=0, description="Duration in milliseconds")


DurationField = (
    Annotated[str, StringConstraints(min_length=1)]
    | Annotated[int, Field(gt=0)]
    | DurationMs
)


class CreateTimerBody(BaseModel):
    """Body of ``POST /timers``.

    ``duration`` accepts ``"2h30m"``-style strings (units s/m/h/d),
    a positive millisecond count, or ``{"ms": N}``.
    """

    name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    duration: DurationField

    def duration_spec(self) -> Any:
        """The duration in the shape :func:`parse_duration` accepts."""
        if isinstance(self.duration, DurationMs):
            return {"ms": self.duration.ms}
        return self.duration


# ── Responses ────────────────────────────────────────────────────────────


class TimerCreatedSchema(BaseModel):
    id: str


class TimerSchema(BaseModel):
    """Public projection of a timer."""

    id: str
    name: str | None = None
    duration_ms: int = Field(description="Length of the current run segment")
    remaining_ms: int = Field(description="Live for running timers, frozen otherwise")
    status: TimerStatus
    created_at: datetime

    @classmethod
    def from_view(cls, view: TimerView) -> TimerSchema:
        return cls(
            id=view.id,
            name=view.name,
            duration_ms=view.duration_ms,
            remaining_ms=view.remaining_ms,
            status=view.status,
            created_at=view.created_at,
        )


class MessageSchema(BaseModel):
    message: str
    changed: bool = Field(description="False when the call was an idempotent no-op")


class HealthResponse(BaseModel):
    """``GET /health`` body."""

    status: Literal["healthy", "unhealthy"] = "healthy"
    service: str = "eggtimer"
    version: str = ""
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    scheduler: dict[str, Any] = Field(default_factory=dict)


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error detail."""

    code: str = Field(description="Machine-readable error code (e.g., 'INVALID_DURATION')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Example:
        {
            "type": "about:blank",
            "title": "Timer not found",
            "status": 404,
            "detail": "Timer not found: 3f9c0e1a2b4d5e6f",
            "instance": "/api/timers/3f9c0e1a2b4d5e6f",
            "errors": []
        }
    """

    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: str = ""
    instance: str = ""
    errors: list[ErrorDetail] = Field(default_factory=list)
