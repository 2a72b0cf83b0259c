"""
Report data business logic.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status

from portal.sheets.fetcher import CachedFetcher, SheetFetchError
from portal.sheets.resolver import ConfigNotFoundError

from . import schemas

logger = logging.getLogger(__name__)

REPORT_KEYS: dict[str, str] = {
    "budget_vs_achievement": "Monthly Budget vs Achievement",
    "stock_180": "180 Days + Stock",
    "ot_report": "OT Report",
    "standard_stock": "Standard Item Stock",
}


def list_report_keys() -> list[schemas.ReportKey]:
    return [schemas.ReportKey(key=key, name=name) for key, name in REPORT_KEYS.items()]


def ensure_known_report(report_key: str) -> str:
    if report_key not in REPORT_KEYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid report key.")
    return report_key


async def get_report(report_key: str, *, fetcher: CachedFetcher) -> schemas.ReportResponse:
    ensure_known_report(report_key)
    try:
        entry = await fetcher.fetch(report_key)
    except ConfigNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SheetFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return schemas.ReportResponse(
        report_key=report_key,
        headers=entry.table.headers,
        rows=entry.table.rows,
        last_updated=datetime.fromtimestamp(entry.fetched_at, tz=timezone.utc),
    )


def refresh_reports(report_key: str | None, *, fetcher: CachedFetcher) -> dict[str, str]:
    fetcher.invalidate(report_key or None)
    logger.info("report_cache_cleared report_key=%s", report_key or "*")
    return {"message": "Cache cleared successfully"}
