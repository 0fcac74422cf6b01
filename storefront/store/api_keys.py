"""Per-user API keys."""

from __future__ import annotations

import secrets
from typing import Any

from storefront.store.documents import delete_document, get_document, insert_document, list_documents

COLLECTION = "api_keys"

# Key length in bytes (24 bytes = 48 hex chars)
_KEY_BYTES = 24


def generate_api_key() -> str:
    """Generate a cryptographically secure API key."""
    return secrets.token_hex(_KEY_BYTES)


async def create_api_key(owner_id: str, name: str = "") -> dict[str, Any]:
    """Mint a new key for ``owner_id``; the key doubles as the document id."""
    return await insert_document(COLLECTION, {"owner_id": owner_id, "name": name}, doc_id=generate_api_key())


async def list_api_keys(owner_id: str) -> list[dict[str, Any]]:
    return await list_documents(COLLECTION, owner_id=owner_id)


async def delete_api_key(api_key: str, owner_id: str) -> bool:
    """Delete a key only if it belongs to ``owner_id``."""
    doc = await get_document(COLLECTION, api_key)
    if doc is None or doc.get("owner_id") != owner_id:
        return False
    return await delete_document(COLLECTION, api_key)
