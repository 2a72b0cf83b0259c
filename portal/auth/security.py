"""
Password hashing and token helpers for portal sessions.

Access tokens are short-lived JWTs carrying the user id and role; refresh
tokens are opaque random strings stored only as SHA-256 digests.
"""

from __future__ import annotations

import hashlib
import os
import secrets
import time
from typing import Any

import bcrypt
import jwt

from portal.core.settings import env_int

ACCESS_TOKEN_TYPE = "access"
_DEV_SECRET = "dev-change-this-secret"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Development default only; set JWT_SECRET in any shared environment.
    return os.environ.get("JWT_SECRET", "").strip() or _DEV_SECRET


def jwt_algorithm() -> str:
    return os.environ.get("JWT_ALG", "").strip() or "HS256"


def access_token_ttl_seconds() -> int:
    return env_int("ACCESS_TOKEN_EXPIRE_MIN", 15) * 60


def refresh_token_expire_days() -> int:
    return env_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def build_access_token(*, user_id: int, email: str, role: str) -> str:
    issued_at = int(time.time())
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + access_token_ttl_seconds(),
    }
    return jwt.encode(claims, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        claims = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if str(claims.get("type") or "").lower() != ACCESS_TOKEN_TYPE:
        raise AuthSecurityError("Token is not an access token.")
    return claims


def build_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def hash_refresh_token(raw_refresh_token: str) -> str:
    if not raw_refresh_token:
        raise AuthSecurityError("Refresh token is empty.")
    return hashlib.sha256(raw_refresh_token.encode("utf-8")).hexdigest()
