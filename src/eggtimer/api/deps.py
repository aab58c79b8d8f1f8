"""
FastAPI dependency injection.

The engine is a per-application singleton built by :func:`create_app` and
stashed on ``app.state``; routers receive it through :data:`Engine`.

Usage in routers::

    from eggtimer.api.deps import Engine

    @router.get("/timers")
    async def list_timers(engine: Engine):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from eggtimer.core.engine import TimerEngine
from eggtimer.core.settings import EggTimerSettings, get_settings


def get_engine(request: Request) -> TimerEngine:
    """The application's timer engine."""
    return request.app.state.engine


# ── Convenience type aliases ─────────────────────────────────────────────

Engine = Annotated[TimerEngine, Depends(get_engine)]
Settings = Annotated[EggTimerSettings, Depends(get_settings)]
