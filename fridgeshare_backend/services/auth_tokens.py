"""JWT helpers for issuing and verifying FridgeShare bearer tokens."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import current_app

from fridgeshare_backend.config import AUTH_MODES, DEFAULT_AUTH_MODE

# Defaults keep tokens predictable for mobile clients.
DEFAULT_ACCESS_TOKEN_TTL = timedelta(days=1)
DEFAULT_JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthSettings:
    """Configuration for resolving callers and issuing tokens."""

    secret: str | None
    mode: str = DEFAULT_AUTH_MODE
    access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL
    algorithm: str = DEFAULT_JWT_ALGORITHM

    @classmethod
    def load(cls, app=None) -> "AuthSettings":
        """Build settings from Flask config or environment.

        The secret is only mandatory in ``jwt`` mode; header mode trusts the
        caller-supplied id and never touches tokens.
        """

        app = app or _try_get_current_app()
        secret = None
        mode = None
        if app:
            secret = app.config.get("AUTH_SECRET")
            mode = app.config.get("AUTH_MODE")

        if not secret:
            secret = os.environ.get("FRIDGESHARE_AUTH_SECRET")
        if not mode:
            mode = os.environ.get("FRIDGESHARE_AUTH_MODE", DEFAULT_AUTH_MODE)

        mode = mode.strip().lower()
        if mode not in AUTH_MODES:
            raise RuntimeError(f"unsupported auth mode {mode!r}")
        if mode == "jwt" and not secret:
            raise RuntimeError("FRIDGESHARE_AUTH_SECRET is not configured")

        return cls(secret=secret, mode=mode)

    def require_secret(self) -> str:
        if not self.secret:
            raise RuntimeError("FRIDGESHARE_AUTH_SECRET is not configured")
        return self.secret


@dataclass(frozen=True)
class AccessToken:
    """A freshly issued bearer token and its expiration."""

    token: str
    expires_at: datetime


def issue_access_token(
    user_id: uuid.UUID | str,
    settings: AuthSettings | None = None,
) -> AccessToken:
    """Create a signed access JWT carrying the ``userId`` claim."""

    settings = settings or AuthSettings.load()
    now = _now()
    expires_at = now + settings.access_token_ttl
    payload = {
        "userId": str(user_id),
        "sub": str(user_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(
        payload, settings.require_secret(), algorithm=settings.algorithm
    )
    return AccessToken(token=token, expires_at=expires_at)


def decode_token(
    token: str,
    settings: AuthSettings | None = None,
) -> dict[str, Any]:
    """Decode and validate a JWT; the payload must carry ``userId``."""

    settings = settings or AuthSettings.load()
    payload = jwt.decode(
        token,
        settings.require_secret(),
        algorithms=[settings.algorithm],
    )
    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("token payload is missing userId")
    return payload


def _try_get_current_app():
    try:
        return current_app._get_current_object()
    except RuntimeError:
        return None
