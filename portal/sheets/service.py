"""
Sheet configuration business logic.

Every mutation invalidates the cached table for the affected report key so
the next read picks up the new location.
"""

from __future__ import annotations

import logging
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas
from .fetcher import CachedFetcher, SheetFetchError
from .resolver import SheetLocation

logger = logging.getLogger(__name__)

# Text columns that ignore empty strings on update.
_REQUIRED_TEXT_FIELDS = ("report_name", "sheet_id", "tab_name", "range")


def _to_response(row: dict[str, Any]) -> schemas.SheetConfigResponse:
    return schemas.SheetConfigResponse(
        id=int(row["id"]),
        report_key=str(row["report_key"]),
        report_name=str(row["report_name"]),
        sheet_id=str(row["sheet_id"]),
        sheet_url=row.get("sheet_url"),
        tab_name=str(row["tab_name"]),
        range=str(row["range"]),
        full_range=str(row.get("full_range") or f"{row['tab_name']}!{row['range']}"),
        is_active=bool(row["is_active"]),
        updated_at=row.get("updated_at"),
        updated_by=row.get("updated_by"),
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sheet configuration not found.")


async def list_configs() -> list[schemas.SheetConfigResponse]:
    return [_to_response(row) for row in await repository.list_configs()]


async def get_config_by_key(report_key: str) -> schemas.SheetConfigResponse:
    row = await repository.get_config_by_key(report_key)
    if row is None:
        raise _not_found()
    return _to_response(row)


async def create_config(
    payload: schemas.SheetConfigCreateRequest,
    *,
    fetcher: CachedFetcher,
    user_id: int,
) -> schemas.SheetConfigResponse:
    report_key = payload.report_key.strip()
    if await repository.get_config_by_key(report_key) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Configuration for this report already exists.",
        )

    try:
        row = await repository.create_config(
            report_key=report_key,
            report_name=payload.report_name.strip(),
            sheet_id=payload.sheet_id.strip(),
            sheet_url=payload.sheet_url,
            tab_name=payload.tab_name.strip(),
            range_=payload.range.strip(),
            updated_by=user_id,
        )
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Configuration for this report already exists.",
        ) from exc

    fetcher.invalidate(report_key)
    logger.info("sheet_config_created report_key=%s user_id=%s", report_key, user_id)
    return _to_response(row)


def _update_changes(payload: schemas.SheetConfigUpdateRequest) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name in _REQUIRED_TEXT_FIELDS:
        value = getattr(payload, name)
        if value is not None and value.strip():
            changes[name] = value.strip()

    if "sheet_url" in payload.model_fields_set:
        changes["sheet_url"] = payload.sheet_url
    if payload.is_active is not None:
        changes["is_active"] = payload.is_active
    return changes


async def update_config(
    config_id: int,
    payload: schemas.SheetConfigUpdateRequest,
    *,
    fetcher: CachedFetcher,
    user_id: int,
) -> schemas.SheetConfigResponse:
    if await repository.get_config(config_id) is None:
        raise _not_found()

    row = await repository.update_config(config_id, changes=_update_changes(payload), updated_by=user_id)
    if row is None:
        raise _not_found()

    fetcher.invalidate(str(row["report_key"]))
    logger.info("sheet_config_updated report_key=%s user_id=%s", row["report_key"], user_id)
    return _to_response(row)


async def delete_config(config_id: int, *, fetcher: CachedFetcher) -> dict[str, str]:
    row = await repository.delete_config(config_id)
    if row is None:
        raise _not_found()

    fetcher.invalidate(str(row["report_key"]))
    logger.info("sheet_config_deleted report_key=%s", row["report_key"])
    return {"message": "Sheet configuration deleted successfully"}


async def run_config_test(config_id: int, *, fetcher: CachedFetcher) -> tuple[int, dict[str, Any]]:
    """
    Live fetch through this config without touching the cache.

    Returns (status_code, body): 200 with a preview, or 400 with the failure.
    """
    row = await repository.get_config(config_id)
    if row is None:
        raise _not_found()

    config = _to_response(row)
    location = SheetLocation(sheet_id=config.sheet_id, range=config.full_range, source="db")
    try:
        table = await fetcher.fetch_location(location)
    except SheetFetchError as exc:
        logger.warning("sheet_config_test_failed report_key=%s error=%s", config.report_key, exc)
        return status.HTTP_400_BAD_REQUEST, {
            "success": False,
            "error": "Failed to fetch data from Google Sheet",
            "details": str(exc),
        }

    return status.HTTP_200_OK, {
        "success": True,
        "message": "Successfully connected to Google Sheet",
        "preview": table.preview(),
    }
