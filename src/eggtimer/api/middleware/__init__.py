"""HTTP middleware and exception handlers."""

from eggtimer.api.middleware.errors import (
    eggtimer_error_handler,
    problem_response,
    unhandled_exception_handler,
    validation_exception_handler,
)
from eggtimer.api.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
    "eggtimer_error_handler",
    "problem_response",
    "unhandled_exception_handler",
    "validation_exception_handler",
]
