"""Signed bearer credentials (JWT)."""

from __future__ import annotations

import time
from typing import Any

from jose import JWTError, jwt

from storefront.config.loader import get_settings


class InvalidToken(Exception):
    """Raised when a bearer token is malformed, badly signed or expired."""
    pass


def create_access_token(user: dict[str, Any]) -> str:
    """Sign a token carrying the user's id, name, e-mail and role."""
    settings = get_settings()
    if not settings.jwt_secret:
        raise RuntimeError("STOREFRONT_JWT_SECRET is not configured")
    now = int(time.time())
    payload = {
        "sub": user["id"],
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "role": user.get("role", "user"),
        "iat": now,
        "exp": now + settings.jwt_expiry_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the claims."""
    settings = get_settings()
    if not settings.jwt_secret:
        raise InvalidToken("signing secret not configured")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc
    if not claims.get("sub"):
        raise InvalidToken("missing subject")
    return claims
