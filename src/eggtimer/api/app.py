"""
FastAPI application factory.

``create_app()`` is the single composition root: it builds the store,
scheduler, event bus and engine from settings, wires middleware, error
handlers and routers, and ties the engine's lifecycle to the app's
lifespan (rehydrate on startup, graceful shutdown on exit).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from eggtimer.api.deps import Engine, Settings, get_settings
from eggtimer.api.middleware.errors import (
    eggtimer_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from eggtimer.api.middleware.request_id import RequestIDMiddleware
from eggtimer.api.schemas import HealthResponse
from eggtimer.core.clock import Clock, MonotonicClock
from eggtimer.core.engine import TimerEngine
from eggtimer.core.errors import EggTimerError
from eggtimer.core.events.memory import InMemoryEventBus
from eggtimer.core.logging import configure_logging, get_logger
from eggtimer.core.scheduling import AsyncioScheduler
from eggtimer.core.settings import EggTimerSettings
from eggtimer.core.stores import create_store

log = get_logger("eggtimer.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan -- startup / shutdown hooks."""
    engine: TimerEngine = app.state.engine
    log.info("eggtimer API starting", version=app.version)

    rescheduled = await engine.rehydrate()
    if rescheduled:
        log.info("timers_resumed_from_store", count=rescheduled)

    yield

    log.info("eggtimer API shutting down")
    await engine.shutdown()


def build_engine(settings: EggTimerSettings, clock: Clock | None = None) -> TimerEngine:
    """Wire store, scheduler and event bus into a :class:`TimerEngine`."""
    clock = clock or MonotonicClock()
    store = create_store(settings.store_backend.value, sqlite_path=settings.sqlite_path)
    return TimerEngine(
        store=store,
        scheduler=AsyncioScheduler(clock),
        event_bus=InMemoryEventBus(),
        clock=clock,
    )


def create_app(
    *,
    settings: EggTimerSettings | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : EggTimerSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    clock : Clock | None
        Monotonic clock for the engine and scheduler (tests pass a
        ``ManualClock``).
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings, clock)
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware ───────────────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(EggTimerError, eggtimer_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from eggtimer.api.routers import timers

    app.include_router(timers.router, prefix=settings.api_prefix, tags=["timers"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(engine: Engine, app_settings: Settings) -> HealthResponse:
        return HealthResponse(
            status="unhealthy" if engine.is_closed else "healthy",
            version=app_settings.api_version,
            scheduler=engine.scheduler_health(),
        )

    return app
