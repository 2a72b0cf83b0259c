"""
Auth business logic: login, refresh-token rotation, logout, token lookup.

Accounts are created by admins (see `portal/users/`); there is no
self-registration.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        name=str(user_row.get("name") or ""),
        role=str(user_row.get("role") or "viewer"),
        is_active=bool(user_row["is_active"]),
        created_at=user_row["created_at"],
    )


async def _issue_token_pair(
    user_row: dict,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaced_token_id: int | None = None,
) -> schemas.TokenPairResponse:
    user_id = int(user_row["id"])
    access_token = security.build_access_token(
        user_id=user_id,
        email=str(user_row["email"]),
        role=str(user_row.get("role") or "viewer"),
    )
    raw_refresh_token = security.build_refresh_token()

    refresh_row = await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=security.hash_refresh_token(raw_refresh_token),
        expires_at=_utc_now() + timedelta(days=security.refresh_token_expire_days()),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    if replaced_token_id is not None:
        await repository.set_refresh_token_replacement(
            old_token_id=replaced_token_id,
            new_token_id=int(refresh_row["id"]),
        )

    return schemas.TokenPairResponse(access_token=access_token, refresh_token=raw_refresh_token)


async def login(
    payload: schemas.LoginRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None or not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        logger.info("login_failed email=%s", repository.normalize_email(payload.email))
        raise _unauthorized("Invalid email or password.")

    if not bool(user_row.get("is_active", False)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive.")

    tokens = await _issue_token_pair(user_row, user_agent=user_agent, ip_address=ip_address)
    return schemas.AuthResponse(user=to_user_response(user_row), tokens=tokens)


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.TokenPairResponse:
    token_row = await repository.get_refresh_token_by_hash(security.hash_refresh_token(payload.refresh_token.strip()))
    if token_row is None:
        raise _unauthorized("Invalid refresh token.")
    if token_row.get("revoked_at") is not None:
        raise _unauthorized("Refresh token is revoked.")

    token_id = int(token_row["id"])
    expires_at = token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        await repository.rotate_refresh_token(token_id)
        raise _unauthorized("Refresh token is expired.")

    user_row = await repository.get_user_by_id(int(token_row["user_id"]))
    if user_row is None or not bool(user_row.get("is_active", False)):
        await repository.rotate_refresh_token(token_id)
        raise _unauthorized("Invalid refresh token owner.")

    await repository.rotate_refresh_token(token_id)
    return await _issue_token_pair(
        user_row,
        user_agent=user_agent,
        ip_address=ip_address,
        replaced_token_id=token_id,
    )


async def logout(payload: schemas.LogoutRequest, *, current_user_id: int) -> dict[str, bool]:
    if payload.refresh_token:
        await repository.revoke_refresh_token_by_hash(security.hash_refresh_token(payload.refresh_token.strip()))
    else:
        await repository.revoke_all_refresh_tokens_for_user(current_user_id)
    return {"ok": True}


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise _unauthorized(str(exc)) from exc

    subject = str(claims.get("sub") or "").strip()
    if not subject.isdigit():
        raise _unauthorized("Invalid access token subject.")

    # Role comes from the DB row, not the token, so demotions apply at once.
    user_row = await repository.get_user_by_id(int(subject))
    if user_row is None:
        raise _unauthorized("User not found.")
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive.")
    return user_row
