"""
Sheet configuration persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

from portal.core import db

_COLUMNS = """
    id, report_key, report_name, sheet_id, sheet_url, tab_name, range,
    is_active, updated_at, updated_by,
    tab_name || '!' || range AS full_range
"""


async def list_configs() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {_COLUMNS}
        FROM sheet_configs
        ORDER BY report_key ASC
        """
    )


async def get_config(config_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM sheet_configs
        WHERE id = $1
        """,
        config_id,
    )


async def get_config_by_key(report_key: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM sheet_configs
        WHERE report_key = $1
        """,
        report_key,
    )


async def get_active_config(report_key: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM sheet_configs
        WHERE report_key = $1
          AND is_active = true
        LIMIT 1
        """,
        report_key,
    )


async def create_config(
    *,
    report_key: str,
    report_name: str,
    sheet_id: str,
    sheet_url: str | None,
    tab_name: str,
    range_: str,
    updated_by: int,
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO sheet_configs (report_key, report_name, sheet_id, sheet_url, tab_name, range, updated_by)
        VALUES ($1, $2, $3, $4, $5, $6, $7)
        RETURNING {_COLUMNS}
        """,
        report_key,
        report_name,
        sheet_id,
        sheet_url,
        tab_name,
        range_,
        updated_by,
    )
    if row is None:
        raise RuntimeError("Failed to create sheet configuration.")
    return row


async def update_config(config_id: int, *, changes: dict[str, Any], updated_by: int) -> dict[str, Any] | None:
    """
    Apply `changes` (column -> value) and stamp updated_by/updated_at.

    Column names come from the service layer's fixed field map, never from
    request input directly.
    """
    assignments = [f"{column} = ${index}" for index, column in enumerate(changes, start=3)]
    assignments.extend(["updated_by = $2", "updated_at = now()"])
    return await db.fetch_one(
        f"""
        UPDATE sheet_configs
        SET {", ".join(assignments)}
        WHERE id = $1
        RETURNING {_COLUMNS}
        """,
        config_id,
        updated_by,
        *changes.values(),
    )


async def delete_config(config_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        DELETE FROM sheet_configs
        WHERE id = $1
        RETURNING id, report_key
        """,
        config_id,
    )
