from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import jwt

from .config import settings


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    now = _now()
    delta = expires_delta if expires_delta is not None else timedelta(minutes=settings.JWT_ACCESS_TTL_MIN)
    payload = dict(claims)
    payload.update(
        {
            "iat": int(now.timestamp()),
            "exp": int((now + delta).timestamp()),
        }
    )
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry.

    Raises ``jose.ExpiredSignatureError`` or ``jose.JWTError`` untouched so
    callers decide how to report them.
    """

    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def peek_claims(token: str) -> dict[str, Any]:
    """Read claims without verifying anything. Raises ``JWTError`` on garbage."""

    return jwt.get_unverified_claims(token)
