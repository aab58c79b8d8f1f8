"""
SQLite-backed timer store.

Durable :class:`~eggtimer.core.stores.TimerStore` on a single file (or
``:memory:``). Every ``put`` commits before returning, so a transition is
on disk before the engine emits its event.

The ``async`` methods call the blocking ``sqlite3`` driver directly on the
event loop. Each call is one short statement on a local file, and running
them inline keeps every read and write of a timer ordered under the
engine's per-timer lock. A store on slow or networked storage would move
these calls to a worker thread.

``start_monotonic_ms`` is stored as-is but is meaningless in a new
process; :meth:`TimerEngine.rehydrate` re-anchors running timers from
``started_at`` instead.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from eggtimer.core.errors import StoreError
from eggtimer.core.logging import get_logger
from eggtimer.core.models import TimerRecord, TimerStatus

__all__ = ["SQLiteTimerStore"]

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS timers (
    id                  TEXT PRIMARY KEY,
    name                TEXT,
    duration_ms         INTEGER NOT NULL,
    start_monotonic_ms  REAL NOT NULL,
    remaining_ms        INTEGER NOT NULL,
    status              TEXT NOT NULL,
    created_at          TEXT NOT NULL,
    started_at          TEXT NOT NULL
)
"""

_COLUMNS = (
    "id, name, duration_ms, start_monotonic_ms, remaining_ms, status, created_at, started_at"
)


class SQLiteTimerStore:
    """Timer store persisted in a SQLite database.

    Example::

        store = SQLiteTimerStore("~/.eggtimer/timers.db")
        await store.put(record)
        await store.close()
    """

    def __init__(self, path: str = ":memory:") -> None:
        if path != ":memory:":
            db_path = Path(path).expanduser()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            path = str(db_path)
        self._path = path
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open timer store at {path}", cause=e).with_context(
                operation="open"
            ) from e
        self._closed = False
        logger.info("sqlite_store_opened", path=path)

    async def get(self, timer_id: str) -> TimerRecord | None:
        with self._guard("get", timer_id):
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM timers WHERE id = ?", (timer_id,)
            ).fetchone()
        return self._to_record(row) if row else None

    async def put(self, record: TimerRecord) -> None:
        with self._guard("put", record.id):
            self._conn.execute(
                f"INSERT OR REPLACE INTO timers ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.name,
                    record.duration_ms,
                    record.start_monotonic_ms,
                    record.remaining_ms,
                    record.status.value,
                    record.created_at.isoformat(),
                    record.started_at.isoformat(),
                ),
            )
            self._conn.commit()

    async def delete(self, timer_id: str) -> None:
        with self._guard("delete", timer_id):
            self._conn.execute("DELETE FROM timers WHERE id = ?", (timer_id,))
            self._conn.commit()

    async def list(self) -> list[TimerRecord]:
        with self._guard("list"):
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM timers ORDER BY created_at, rowid"
            ).fetchall()
        return [self._to_record(row) for row in rows]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._conn.commit()
        self._conn.close()
        logger.info("sqlite_store_closed", path=self._path)

    def _guard(self, operation: str, timer_id: str | None = None) -> _StoreGuard:
        if self._closed:
            raise StoreError("Timer store is closed", retryable=False).with_context(
                operation=operation, timer_id=timer_id
            )
        return _StoreGuard(operation, timer_id)

    @staticmethod
    def _to_record(row: sqlite3.Row) -> TimerRecord:
        return TimerRecord(
            id=row["id"],
            name=row["name"],
            duration_ms=int(row["duration_ms"]),
            start_monotonic_ms=float(row["start_monotonic_ms"]),
            remaining_ms=int(row["remaining_ms"]),
            status=TimerStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            started_at=datetime.fromisoformat(row["started_at"]),
        )


class _StoreGuard:
    """Translate driver errors raised inside the block into ``StoreError``.

    ``OverflowError`` is what the driver raises for an int beyond 64 bits.
    """

    def __init__(self, operation: str, timer_id: str | None) -> None:
        self._operation = operation
        self._timer_id = timer_id

    def __enter__(self) -> _StoreGuard:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None and isinstance(exc, (sqlite3.Error, OverflowError)):
            raise StoreError(
                f"Timer store {self._operation} failed: {exc}", cause=exc
            ).with_context(operation=self._operation, timer_id=self._timer_id) from exc
