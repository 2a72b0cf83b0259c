"""
User administration endpoints (admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from portal.auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return {"users": await service.list_users()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: schemas.UserCreateRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"user": await service.create_user(payload)}


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    payload: schemas.UserUpdateRequest,
    current_user: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"user": await service.update_user(user_id, payload, current_user_id=int(current_user["id"]))}


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.delete_user(user_id, current_user_id=int(current_user["id"]))
