"""Password hashing and JWT helpers.

Access tokens carry the user's id, name and admin flag and are signed with
``JWT_SECRET``. Refresh tokens carry only the id and are signed with the
separate ``REFRESH_TOKEN_SECRET`` so one cannot be replayed as the other.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    REFRESH_SECRET_KEY,
    REFRESH_TOKEN_EXPIRE_DAYS,
    SECRET_KEY,
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def _encode(claims: dict[str, Any], secret: str, expires_in: timedelta) -> str:
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def create_access_token(user) -> str:
    return _encode(
        {
            "userId": user.id,
            "username": user.username,
            "admin": bool(user.is_admin),
            "type": ACCESS_TOKEN_TYPE,
        },
        SECRET_KEY,
        timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user) -> str:
    return _encode(
        {"userId": user.id, "type": REFRESH_TOKEN_TYPE},
        REFRESH_SECRET_KEY,
        timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    )


def _decode(token: str, secret: str, token_type: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    user_id = payload.get("userId")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        return None
    return user_id


def decode_access_token(token: str) -> Optional[int]:
    """Return the user id in a valid access token, or None."""
    return _decode(token, SECRET_KEY, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[int]:
    """Return the user id in a valid refresh token, or None."""
    return _decode(token, REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE)
