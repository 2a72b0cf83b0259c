"""
User administration logic.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException, status

from portal.auth import repository as auth_repository
from portal.auth import security
from portal.auth.schemas import UserResponse
from portal.auth.service import to_user_response

from . import repository, schemas

logger = logging.getLogger(__name__)


def _already_exists() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists.")


async def list_users() -> list[UserResponse]:
    return [to_user_response(row) for row in await repository.list_users()]


async def create_user(payload: schemas.UserCreateRequest) -> UserResponse:
    if await auth_repository.get_user_by_email(payload.email) is not None:
        raise _already_exists()

    try:
        row = await repository.create_user(
            email=payload.email,
            password_hash=security.hash_password(payload.password),
            name=payload.name.strip(),
            role=payload.role,
        )
    except asyncpg.UniqueViolationError as exc:
        raise _already_exists() from exc

    logger.info("user_created user_id=%s role=%s", row["id"], row["role"])
    return to_user_response(row)


async def update_user(user_id: int, payload: schemas.UserUpdateRequest, *, current_user_id: int) -> UserResponse:
    if user_id == current_user_id and payload.role is not None and payload.role != "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot remove your own admin role.")

    row = await repository.update_user(
        user_id,
        name=(payload.name or "").strip() or None,
        role=payload.role,
        password_hash=security.hash_password(payload.password) if payload.password else None,
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return to_user_response(row)


async def delete_user(user_id: int, *, current_user_id: int) -> dict[str, str]:
    if user_id == current_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account.")

    if not await repository.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    logger.info("user_deleted user_id=%s by=%s", user_id, current_user_id)
    return {"message": "User deleted successfully"}
