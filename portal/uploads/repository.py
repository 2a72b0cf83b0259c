"""
File metadata persistence (`file_meta`). The bytes themselves live in Drive.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from portal.core import db

_SELECT = """
    SELECT
      f.id,
      f.original_name,
      f.drive_file_id,
      f.drive_file_link,
      f.section,
      f.subsection,
      f.date,
      f.month,
      f.created_at,
      f.uploaded_by AS uploader_id,
      u.name AS uploader_name,
      u.email AS uploader_email
    FROM file_meta f
    LEFT JOIN users u ON u.id = f.uploaded_by
"""


async def insert_file(
    *,
    original_name: str,
    drive_file_id: str,
    drive_file_link: str,
    section: str,
    subsection: str,
    date: datetime,
    month: str,
    uploaded_by: int,
) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO file_meta (original_name, drive_file_id, drive_file_link, section, subsection, date, month, uploaded_by)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        RETURNING id, original_name, drive_file_id, drive_file_link, section, subsection, date, month,
                  created_at, uploaded_by AS uploader_id
        """,
        original_name,
        drive_file_id,
        drive_file_link,
        section,
        subsection,
        date,
        month,
        uploaded_by,
    )
    if row is None:
        raise RuntimeError("Failed to insert file metadata.")
    return row


def _filters(
    *,
    section: str | None,
    subsection: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    args: list[Any] = []
    for clause, value in (
        ("f.section = ${}", section),
        ("f.subsection = ${}", subsection),
        ("f.date >= ${}", date_from),
        ("f.date < ${}", date_to),
    ):
        if value is None:
            continue
        args.append(value)
        clauses.append(clause.format(len(args)))

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, args


async def list_files(
    *,
    section: str | None = None,
    subsection: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """
    Newest-first page of files plus the total count for the same filters.

    `date_to` is exclusive.
    """
    where, args = _filters(section=section, subsection=subsection, date_from=date_from, date_to=date_to)
    rows = await db.fetch_all(
        f"""
        {_SELECT}
        {where}
        ORDER BY f.created_at DESC, f.id DESC
        LIMIT ${len(args) + 1}
        OFFSET ${len(args) + 2}
        """,
        *args,
        limit,
        offset,
    )
    total = await db.fetch_value(f"SELECT count(*) FROM file_meta f {where}", *args)
    return rows, int(total or 0)


async def list_recent_files(*, section: str, subsection: str, limit: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        {_SELECT}
        WHERE f.section = $1
          AND f.subsection = $2
        ORDER BY f.created_at DESC, f.id DESC
        LIMIT $3
        """,
        section,
        subsection,
        limit,
    )


async def get_file(file_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        {_SELECT}
        WHERE f.id = $1
        """,
        file_id,
    )


async def delete_file(file_id: int) -> None:
    await db.execute(
        """
        DELETE FROM file_meta
        WHERE id = $1
        """,
        file_id,
    )
