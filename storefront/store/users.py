"""User accounts, unique by e-mail."""

from __future__ import annotations

from typing import Any

import structlog

from storefront.store.documents import get_document, insert_document, new_id
from storefront.store.redis import require_redis

logger = structlog.get_logger()

COLLECTION = "users"

# Hash mapping normalized e-mail -> user id
_EMAIL_INDEX = "users:email"


class DuplicateEmail(Exception):
    """Raised when registering an e-mail that already has an account."""
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def create_user(*, name: str, email: str, password_hash: str, role: str) -> dict[str, Any]:
    """Create a user, claiming the e-mail atomically.

    Raises DuplicateEmail if the address is already taken.
    """
    client = require_redis()
    email = normalize_email(email)
    user_id = new_id()
    claimed = await client.hsetnx(_EMAIL_INDEX, email, user_id)
    if not claimed:
        raise DuplicateEmail(email)
    try:
        return await insert_document(
            COLLECTION,
            {"name": name, "email": email, "password_hash": password_hash, "role": role},
            doc_id=user_id,
        )
    except Exception:
        # Release the claimed e-mail so the address is not locked out
        logger.error("user_insert_failed", user_id=user_id)
        await client.hdel(_EMAIL_INDEX, email)
        raise


async def get_user(user_id: str) -> dict[str, Any] | None:
    return await get_document(COLLECTION, user_id)


async def get_user_by_email(email: str) -> dict[str, Any] | None:
    """Look a user up through the e-mail index."""
    client = require_redis()
    user_id = await client.hget(_EMAIL_INDEX, normalize_email(email))
    if user_id is None:
        return None
    return await get_user(user_id)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip secrets from a user document for responses."""
    return {key: value for key, value in user.items() if key != "password_hash"}
