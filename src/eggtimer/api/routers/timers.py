"""
Timer router -- thin translation from HTTP to :class:`TimerEngine` calls.

POST   /timers                 create, 201 {"id": ...}
GET    /timers                 list
GET    /timers/{timer_id}      get (404 if unknown)
POST   /timers/{timer_id}/pause
POST   /timers/{timer_id}/resume
DELETE /timers/{timer_id}      cancel, 204

Pause, resume and cancel are idempotent: calling them on an unknown or
already-transitioned timer succeeds without effect.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Response

from eggtimer.api.deps import Engine
from eggtimer.api.schemas import CreateTimerBody, MessageSchema, TimerCreatedSchema, TimerSchema

router = APIRouter(prefix="/timers")

TimerId = Annotated[str, Path(min_length=1, description="Timer ID")]


@router.post("", response_model=TimerCreatedSchema, status_code=201)
async def create_timer(engine: Engine, body: CreateTimerBody):
    """Create and start a timer.

    Example:
        POST /api/timers
        {"name": "tea", "duration": "3m"}

        Response (201):
        {"id": "3f9c0e1a2b4d5e6f"}
    """
    timer_id = await engine.create(body.duration_spec(), name=body.name)
    return TimerCreatedSchema(id=timer_id)


@router.get("", response_model=list[TimerSchema])
async def list_timers(engine: Engine):
    """List every timer with live remaining time for running ones."""
    return [TimerSchema.from_view(view) for view in await engine.list()]


@router.get("/{timer_id}", response_model=TimerSchema)
async def get_timer(engine: Engine, timer_id: TimerId):
    """Get one timer.

    Raises:
        404 NOT_FOUND: no timer with this id.
    """
    return TimerSchema.from_view(await engine.get(timer_id))


@router.post("/{timer_id}/pause", response_model=MessageSchema)
async def pause_timer(engine: Engine, timer_id: TimerId):
    changed = await engine.pause(timer_id)
    return MessageSchema(message="Timer paused", changed=changed)


@router.post("/{timer_id}/resume", response_model=MessageSchema)
async def resume_timer(engine: Engine, timer_id: TimerId):
    changed = await engine.resume(timer_id)
    return MessageSchema(message="Timer resumed", changed=changed)


@router.delete("/{timer_id}", status_code=204, response_class=Response)
async def cancel_timer(engine: Engine, timer_id: TimerId):
    await engine.cancel(timer_id)
    return Response(status_code=204)
