"""
In-memory TTL cache for normalized report tables.

One instance per process, created in the app lifespan and passed to the
fetcher. There is no locking: two concurrent misses for the same key both
fetch and the later write wins.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from .normalize import NormalizedTable

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    table: NormalizedTable
    fetched_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.fetched_at < ttl_seconds


class TableCache:
    def __init__(self, *, ttl_seconds: float = 300, clock: Clock = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, report_key: str) -> CacheEntry | None:
        """
        Return the entry for `report_key` while it is fresh, else None.
        """
        entry = self._entries.get(report_key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock(), self.ttl_seconds):
            return None
        return entry

    def set(self, report_key: str, table: NormalizedTable) -> CacheEntry:
        entry = CacheEntry(table=table, fetched_at=self._clock())
        self._entries[report_key] = entry
        return entry

    def invalidate(self, report_key: str) -> None:
        self._entries.pop(report_key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
