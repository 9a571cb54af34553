"""Token signing and password hashing helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.hash import bcrypt

JWT_ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a bearer token cannot be trusted."""


class TokenExpiredError(TokenError):
    pass


def create_token(
    claims: Mapping[str, Any],
    *,
    secret: str,
    expires_delta: timedelta,
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload: Dict[str, Any] = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + expires_delta
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, *, secret: str) -> Dict[str, Any]:
    """Return the verified claims of ``token``.

    Expired tokens raise :class:`TokenExpiredError` so callers can tell them
    apart from malformed or tampered ones.
    """

    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except JWTError as exc:
        raise TokenError("Token is not valid") from exc


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.verify(password, password_hash)
    except ValueError:
        return False
