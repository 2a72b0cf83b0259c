"""
Section persistence. Subsections are stored inline as a jsonb list.
"""

from __future__ import annotations

from typing import Any

from portal.core import db

_COLUMNS = "id, name, slug, subsections, created_at"


async def list_sections() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {_COLUMNS}
        FROM sections
        ORDER BY name ASC
        """
    )


async def get_section_by_slug(slug: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM sections
        WHERE slug = $1
        """,
        slug,
    )


async def create_section(*, name: str, slug: str, subsections: list[dict[str, str]]) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO sections (name, slug, subsections)
        VALUES ($1, $2, $3)
        RETURNING {_COLUMNS}
        """,
        name,
        slug,
        subsections,
    )
    if row is None:
        raise RuntimeError("Failed to create section.")
    return row


async def update_section(
    section_id: int,
    *,
    name: str | None,
    slug: str | None,
    subsections: list[dict[str, str]] | None,
) -> dict[str, Any] | None:
    # NULL parameters keep the current column value.
    return await db.fetch_one(
        f"""
        UPDATE sections
        SET name = COALESCE($2, name),
            slug = COALESCE($3, slug),
            subsections = COALESCE($4, subsections)
        WHERE id = $1
        RETURNING {_COLUMNS}
        """,
        section_id,
        name,
        slug,
        subsections,
    )


async def delete_section(section_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM sections
        WHERE id = $1
        RETURNING id
        """,
        section_id,
    )
    return row is not None
