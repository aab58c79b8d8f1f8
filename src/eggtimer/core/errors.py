"""
Structured error types for eggtimer.

Every error raised by the engine, its stores and its scheduler extends
:class:`EggTimerError`, so callers (the HTTP layer, the CLI) can tell
caller-facing failures apart from internal ones without string matching.

Each error carries:
- **Category:** What kind of failure (not-found, validation, storage, ...)
- **Retryable:** Whether repeating the operation may succeed
- **Context:** Timer id, operation and free-form metadata for logging
- **Cause:** Chained underlying exception

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       EggTimerError                          │
        │          (category, retryable, context, cause)               │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  TimerNotFoundError   ValidationError     StoreError         │
        │  (NOT_FOUND)          (VALIDATION)        (STORAGE, retry)   │
        │                            │                                 │
        │                       InvalidDurationError                   │
        │                                                              │
        │  SchedulerCallbackError        EngineClosedError             │
        │  (SCHEDULER)                   (INTERNAL)                    │
        └─────────────────────────────────────────────────────────────┘

Propagation:
    - ``TimerNotFoundError``, ``InvalidDurationError`` and ``ValidationError``
      are caller-facing and map to 404 / 400 at the HTTP edge.
    - ``StoreError`` surfaces from the operation whose read or write failed.
    - ``SchedulerCallbackError`` never escapes the scheduler; it exists so the
      failure is logged with the same structure as every other error.

Usage:
    from eggtimer.core.errors import TimerNotFoundError

    try:
        view = await engine.get(timer_id)
    except TimerNotFoundError:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and HTTP mapping."""

    NOT_FOUND = "NOT_FOUND"       # Unknown timer id
    VALIDATION = "VALIDATION"     # Bad duration spec, bad name
    STORAGE = "STORAGE"           # Timer store read/write failed
    SCHEDULER = "SCHEDULER"       # Wake-up callback raised
    INTERNAL = "INTERNAL"         # Bugs, engine shut down


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        timer_id: Timer the failing operation targeted
        operation: Engine/store operation name (``create``, ``put``, ...)
        metadata: Additional key-value pairs
    """

    timer_id: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.timer_id is not None:
            result["timer_id"] = self.timer_id
        if self.operation is not None:
            result["operation"] = self.operation
        if self.metadata:
            result.update(self.metadata)
        return result


class EggTimerError(Exception):
    """Base exception for all eggtimer errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass what is specific to them.

    Examples:
        >>> error = EggTimerError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(timer_id="abc").context.timer_id
        'abc'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> EggTimerError:
        """Add context to this error (fluent API).

        Usage:
            raise StoreError("write failed").with_context(timer_id=tid, operation="put")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CALLER-FACING ERRORS
# =============================================================================


class TimerNotFoundError(EggTimerError):
    """The referenced timer id is not in the store."""

    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, timer_id: str, **kwargs: Any):
        super().__init__(f"Timer not found: {timer_id}", **kwargs)
        self.timer_id = timer_id
        self.context.timer_id = timer_id


class ValidationError(EggTimerError):
    """Input failed validation (never retryable)."""

    default_category = ErrorCategory.VALIDATION


class InvalidDurationError(ValidationError):
    """A duration spec that does not parse, or parses to zero or past the maximum."""

    def __init__(self, message: str, *, spec: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.spec = spec
        if spec is not None:
            self.context.metadata["duration_spec"] = repr(spec)


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class StoreError(EggTimerError):
    """The timer store could not complete a read or write."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


class SchedulerCallbackError(EggTimerError):
    """A wake-up callback raised while firing.

    Built and logged by the scheduler; never raised out of the scheduling
    task.
    """

    default_category = ErrorCategory.SCHEDULER


class EngineClosedError(EggTimerError):
    """A mutating operation arrived after :meth:`TimerEngine.shutdown`."""

    default_category = ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "EggTimerError",
    "TimerNotFoundError",
    "ValidationError",
    "InvalidDurationError",
    "StoreError",
    "SchedulerCallbackError",
    "EngineClosedError",
]
