"""
Section business logic.
"""

from __future__ import annotations

import re
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """
    "Quality Reports / Daily" -> "quality-reports-daily".
    """
    return _NON_SLUG_CHARS.sub("-", (name or "").lower()).strip("-")


def format_subsections(items: list[schemas.SubsectionItem]) -> list[dict[str, str]]:
    names = [item if isinstance(item, str) else item.name for item in items]
    return [{"name": name.strip(), "slug": slugify(name)} for name in names if name.strip()]


def _to_response(row: dict[str, Any]) -> schemas.SectionResponse:
    return schemas.SectionResponse(
        id=int(row["id"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        subsections=list(row.get("subsections") or []),
        created_at=row["created_at"],
    )


def _already_exists() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Section already exists.")


async def list_sections() -> list[schemas.SectionResponse]:
    return [_to_response(row) for row in await repository.list_sections()]


async def create_section(payload: schemas.SectionCreateRequest) -> schemas.SectionResponse:
    name = payload.name.strip()
    slug = slugify(name)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Section name is required.")
    if await repository.get_section_by_slug(slug) is not None:
        raise _already_exists()

    try:
        row = await repository.create_section(
            name=name,
            slug=slug,
            subsections=format_subsections(payload.subsections),
        )
    except asyncpg.UniqueViolationError as exc:
        raise _already_exists() from exc
    return _to_response(row)


async def update_section(section_id: int, payload: schemas.SectionUpdateRequest) -> schemas.SectionResponse:
    name = (payload.name or "").strip() or None
    slug = slugify(name) if name else None
    if name and not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Section name is required.")
    subsections = format_subsections(payload.subsections) if payload.subsections is not None else None

    try:
        row = await repository.update_section(
            section_id,
            name=name,
            slug=slug,
            subsections=subsections,
        )
    except asyncpg.UniqueViolationError as exc:
        raise _already_exists() from exc

    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found.")
    return _to_response(row)


async def delete_section(section_id: int) -> dict[str, str]:
    if not await repository.delete_section(section_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found.")
    return {"message": "Section deleted successfully"}
