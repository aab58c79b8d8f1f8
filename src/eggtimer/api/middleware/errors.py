"""
Error handlers -- map eggtimer errors to RFC 7807 responses.

``TimerNotFoundError`` and validation failures are caller-facing and keep
their message; anything unexpected becomes a generic 500 unless the app
runs with ``debug`` enabled.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from eggtimer.api.schemas import ErrorDetail, ProblemDetail
from eggtimer.core.errors import EggTimerError, EngineClosedError, ErrorCategory
from eggtimer.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.STORAGE: 503,
    ErrorCategory.SCHEDULER: 500,
    ErrorCategory.INTERNAL: 500,
}

CATEGORY_TO_TITLE: dict[ErrorCategory, str] = {
    ErrorCategory.NOT_FOUND: "Timer not found",
    ErrorCategory.VALIDATION: "Validation error",
    ErrorCategory.STORAGE: "Timer store unavailable",
    ErrorCategory.SCHEDULER: "Scheduler error",
    ErrorCategory.INTERNAL: "Internal Server Error",
}


def status_for_error(error: EggTimerError) -> int:
    """Resolve an error to an HTTP status, defaulting to 500."""
    if isinstance(error, EngineClosedError):
        return 503
    return CATEGORY_TO_STATUS.get(error.category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**e) for e in errors or []],
    )
    return JSONResponse(status_code=status, content=body.model_dump())


async def eggtimer_error_handler(request: Request, exc: EggTimerError) -> JSONResponse:
    """Translate a typed engine error into its problem response."""
    status = status_for_error(exc)
    if status >= 500:
        logger.error("request_failed", path=request.url.path, **exc.to_dict())
        title = "Service unavailable" if status == 503 else CATEGORY_TO_TITLE[exc.category]
    else:
        title = CATEGORY_TO_TITLE.get(exc.category, "Request failed")
    return problem_response(
        status=status,
        title=title,
        detail=exc.message,
        instance=str(request.url),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/path validation failures are 400s, not FastAPI's default 422."""
    errors = [
        {
            "code": str(err.get("type", "invalid")).upper(),
            "message": err.get("msg", "Invalid value"),
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or None,
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=400,
        title="Validation error",
        detail="Request failed validation",
        instance=str(request.url),
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions -- returns 500 with ProblemDetail."""
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
