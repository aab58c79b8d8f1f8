"""
In-memory timer store.

The reference :class:`~eggtimer.core.stores.TimerStore`: a dict of copies.
Nothing survives the process, so rehydration finds nothing to do.
"""

from __future__ import annotations

from eggtimer.core.errors import StoreError
from eggtimer.core.models import TimerRecord

__all__ = ["InMemoryTimerStore"]


class InMemoryTimerStore:
    """Dict-backed store that stores and returns copies.

    Example::

        store = InMemoryTimerStore()
        await store.put(record)
        again = await store.get(record.id)   # equal, but not the same object
    """

    def __init__(self) -> None:
        self._records: dict[str, TimerRecord] = {}
        self._closed = False

    async def get(self, timer_id: str) -> TimerRecord | None:
        self._check_open("get")
        record = self._records.get(timer_id)
        return record.copy() if record else None

    async def put(self, record: TimerRecord) -> None:
        self._check_open("put")
        self._records[record.id] = record.copy()

    async def delete(self, timer_id: str) -> None:
        self._check_open("delete")
        self._records.pop(timer_id, None)

    async def list(self) -> list[TimerRecord]:
        self._check_open("list")
        records = sorted(self._records.values(), key=lambda r: r.created_at)
        return [record.copy() for record in records]

    async def close(self) -> None:
        self._closed = True
        self._records.clear()

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise StoreError("Timer store is closed", retryable=False).with_context(
                operation=operation
            )

    def __len__(self) -> int:
        return len(self._records)
