"""
User persistence for the admin screens.
"""

from __future__ import annotations

from typing import Any

from portal.auth.repository import USER_COLUMNS, normalize_email
from portal.core import db


async def list_users() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        ORDER BY created_at DESC, id DESC
        """
    )


async def create_user(*, email: str, password_hash: str, name: str, role: str) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash, name, role)
        VALUES ($1, $2, $3, $4)
        RETURNING {USER_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
        name,
        role,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(
    user_id: int,
    *,
    name: str | None = None,
    role: str | None = None,
    password_hash: str | None = None,
) -> dict[str, Any] | None:
    # NULL parameters keep the current column value.
    return await db.fetch_one(
        f"""
        UPDATE users
        SET name = COALESCE($2, name),
            role = COALESCE($3, role),
            password_hash = COALESCE($4, password_hash),
            updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        name,
        role,
        password_hash,
    )


async def delete_user(user_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM users
        WHERE id = $1
        RETURNING id
        """,
        user_id,
    )
    return row is not None
