"""
Cached access to report tables.

The cache is keyed by report key, not by sheet location, so changing a
report's config only takes effect once its entry is invalidated.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from portal.core.google import GoogleAPIError

from .cache import CacheEntry, TableCache
from .normalize import NormalizedTable, normalize_rows
from .resolver import ConfigResolver, SheetLocation

logger = logging.getLogger(__name__)

SheetReader = Callable[[str, str], Awaitable[list[list[str]]]]


class SheetFetchError(RuntimeError):
    pass


class CachedFetcher:
    def __init__(self, *, resolver: ConfigResolver, reader: SheetReader, cache: TableCache) -> None:
        self.resolver = resolver
        self._reader = reader
        self._cache = cache

    async def fetch(self, report_key: str) -> CacheEntry:
        """
        Return the cached table for `report_key`, fetching it on a miss.

        Raises ConfigNotFoundError when no location is configured and
        SheetFetchError when the read API fails. A failed fetch leaves any
        previous (stale) entry in place without serving it.
        """
        cached = self._cache.get(report_key)
        if cached is not None:
            return cached

        location = await self.resolver.resolve(report_key)
        try:
            table = await self.fetch_location(location)
        except SheetFetchError:
            logger.error(
                "sheet_fetch_failed report_key=%s sheet_id=%s range=%s",
                report_key,
                location.sheet_id,
                location.range,
            )
            raise

        logger.info(
            "sheet_fetched report_key=%s source=%s rows=%s",
            report_key,
            location.source,
            len(table.rows),
        )
        return self._cache.set(report_key, table)

    async def fetch_location(self, location: SheetLocation) -> NormalizedTable:
        """
        Live, uncached read of one location.
        """
        try:
            rows = await self._reader(location.sheet_id, location.range)
        except GoogleAPIError as exc:
            raise SheetFetchError(f"Failed to fetch sheet data: {exc}") from exc
        return normalize_rows(rows)

    def invalidate(self, report_key: str | None = None) -> None:
        if report_key:
            self._cache.invalidate(report_key)
        else:
            self._cache.clear()
