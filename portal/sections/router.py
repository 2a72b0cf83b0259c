"""
Section endpoints. Reads are open to any signed-in user; writes are admin only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from portal.auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/sections")


@router.get("")
async def list_sections(_: dict = Depends(auth_dependencies.get_current_user)) -> dict:
    return {"sections": await service.list_sections()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_section(
    payload: schemas.SectionCreateRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"section": await service.create_section(payload)}


@router.put("/{section_id}")
async def update_section(
    section_id: int,
    payload: schemas.SectionUpdateRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"section": await service.update_section(section_id, payload)}


@router.delete("/{section_id}")
async def delete_section(
    section_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.delete_section(section_id)
