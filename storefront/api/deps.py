"""Bearer authentication dependencies."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request

from storefront.auth.tokens import InvalidToken, decode_access_token
from storefront.config.loader import get_settings
from storefront.middleware.route import get_context
from storefront.store import users as user_store

logger = structlog.get_logger()


def _extract_bearer(request: Request) -> str | None:
    """Take the token from ``Authorization: Bearer`` first, then the auth cookie."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(get_settings().auth_cookie_name)


async def require_user(request: Request) -> dict[str, Any]:
    """Resolve the calling user from a valid bearer token."""
    token = _extract_bearer(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        claims = decode_access_token(token)
    except InvalidToken as exc:
        logger.info("bearer_token_rejected", reason=str(exc))
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = await user_store.get_user(claims["sub"])
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    get_context(request).user_id = user["id"]
    structlog.contextvars.bind_contextvars(user_id=user["id"])
    return user


async def require_admin(user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    """Like ``require_user`` but only for admins."""
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
