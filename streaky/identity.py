"""Password hashing and signed access/refresh tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from streaky.config import Settings
from streaky.errors import AuthError


ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def _encode(claims: dict[str, Any], secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def sign_access_token(user: dict[str, Any], settings: Settings) -> str:
    return _encode(
        {"sub": user["_id"], "tv": int(user.get("tokenVersion", 0)), "email": user.get("email")},
        settings.jwt_access_secret,
        timedelta(minutes=settings.access_token_minutes),
    )


def sign_refresh_token(user: dict[str, Any], settings: Settings) -> str:
    return _encode(
        {"sub": user["_id"], "tv": int(user.get("tokenVersion", 0))},
        settings.jwt_refresh_secret,
        timedelta(days=settings.refresh_token_days),
    )


def _decode(token: str, secret: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("invalid token") from e


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    return _decode(token, settings.jwt_access_secret)


def decode_refresh_token(token: str, settings: Settings) -> dict[str, Any]:
    return _decode(token, settings.jwt_refresh_secret)


def check_token_version(payload: dict[str, Any], user: dict[str, Any] | None) -> None:
    """Reject tokens minted before the user's last logout."""
    if user is None:
        raise AuthError("unknown user")
    if int(payload.get("tv", 0)) != int(user.get("tokenVersion", 0)):
        raise AuthError("token revoked")
