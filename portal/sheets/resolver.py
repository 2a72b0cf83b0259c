"""
Decide which spreadsheet location backs a report key.

An active database config wins; the static GOOGLE_SHEETS_CONFIG map is the
fallback.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

ConfigLookup = Callable[[str], Awaitable[dict[str, Any] | None]]


class ConfigNotFoundError(RuntimeError):
    def __init__(self, report_key: str) -> None:
        super().__init__(f"Report configuration not found for: {report_key}")
        self.report_key = report_key


@dataclass(frozen=True)
class SheetLocation:
    sheet_id: str
    range: str
    source: str  # "db" | "static"


class ConfigResolver:
    def __init__(self, *, lookup: ConfigLookup, static_configs: Mapping[str, Mapping[str, str]]) -> None:
        self._lookup = lookup
        self._static_configs = dict(static_configs)

    async def resolve(self, report_key: str) -> SheetLocation:
        row = await self._lookup(report_key)
        if row is not None:
            full_range = row.get("full_range") or f"{row['tab_name']}!{row['range']}"
            return SheetLocation(sheet_id=str(row["sheet_id"]), range=str(full_range), source="db")

        static = self._static_configs.get(report_key)
        if static is not None:
            return SheetLocation(sheet_id=str(static["sheet_id"]), range=str(static["range"]), source="static")

        raise ConfigNotFoundError(report_key)
