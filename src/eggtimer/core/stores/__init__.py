"""Timer stores.

The engine depends only on the :class:`TimerStore` protocol: an async
key-value map of timer id to :class:`~eggtimer.core.models.TimerRecord`
with read-after-write consistency per id. Implementations hand out and
keep copies, so a caller mutating a record it read never changes stored
state without a ``put``.

Implementations
---------------
memory      InMemoryTimerStore -- dict-backed, the reference implementation
sqlite      SQLiteTimerStore   -- single-file durable store (``sqlite3``)

Failures are raised as :class:`~eggtimer.core.errors.StoreError`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from eggtimer.core.models import TimerRecord

__all__ = ["TimerStore", "create_store"]


@runtime_checkable
class TimerStore(Protocol):
    """Protocol for timer persistence."""

    async def get(self, timer_id: str) -> TimerRecord | None:
        """Return a copy of the record, or ``None`` if absent."""
        ...

    async def put(self, record: TimerRecord) -> None:
        """Insert or replace the record for ``record.id``."""
        ...

    async def delete(self, timer_id: str) -> None:
        """Remove the record; no-op if absent."""
        ...

    async def list(self) -> list[TimerRecord]:
        """Return copies of every record, oldest first."""
        ...

    async def close(self) -> None:
        """Flush and release resources."""
        ...


def create_store(backend: str = "memory", *, sqlite_path: str = "eggtimer.db") -> TimerStore:
    """Build a store for a ``store_backend`` setting value."""
    if backend == "memory":
        from eggtimer.core.stores.memory import InMemoryTimerStore

        return InMemoryTimerStore()
    if backend == "sqlite":
        from eggtimer.core.stores.sqlite import SQLiteTimerStore

        return SQLiteTimerStore(sqlite_path)
    raise ValueError(f"Unknown store backend: {backend!r}")
