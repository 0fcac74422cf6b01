"""JSON document collections stored in Redis.

Each document lives as a JSON string at ``<collection>:<id>``; the ids of a
collection are tracked in the set ``<collection>:ids``. This is the whole
"document database" the service needs: get, list, insert, update, delete.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog

from storefront.store.redis import require_redis

logger = structlog.get_logger()


def _doc_key(collection: str, doc_id: str) -> str:
    return f"{collection}:{doc_id}"


def _ids_key(collection: str) -> str:
    return f"{collection}:ids"


def utcnow() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid4().hex


async def get_document(collection: str, doc_id: str) -> dict[str, Any] | None:
    """Fetch one document by id."""
    client = require_redis()
    raw = await client.get(_doc_key(collection, doc_id))
    if raw is None:
        return None
    return json.loads(raw)


async def list_documents(collection: str, **filters: Any) -> list[dict[str, Any]]:
    """Return every document in a collection whose fields equal ``filters``.

    Results are ordered by ``created_at``.
    """
    client = require_redis()
    ids = await client.smembers(_ids_key(collection))
    if not ids:
        return []
    raws = await client.mget([_doc_key(collection, doc_id) for doc_id in ids])
    docs = [json.loads(raw) for raw in raws if raw is not None]
    matching = [
        doc for doc in docs
        if all(doc.get(field) == value for field, value in filters.items())
    ]
    return sorted(matching, key=lambda doc: doc.get("created_at", ""))


async def insert_document(collection: str, fields: dict[str, Any], doc_id: str | None = None) -> dict[str, Any]:
    """Store a new document, assigning ``id`` and ``created_at``."""
    client = require_redis()
    doc = {"id": doc_id or new_id(), **fields, "created_at": utcnow()}
    await client.set(_doc_key(collection, doc["id"]), json.dumps(doc))
    await client.sadd(_ids_key(collection), doc["id"])
    logger.debug("document_inserted", collection=collection, doc_id=doc["id"])
    return doc


async def update_document(collection: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Merge ``fields`` into an existing document and stamp ``updated_at``.

    Returns None if the document does not exist.
    """
    client = require_redis()
    doc = await get_document(collection, doc_id)
    if doc is None:
        return None
    doc.update(fields)
    doc["id"] = doc_id
    doc["updated_at"] = utcnow()
    await client.set(_doc_key(collection, doc_id), json.dumps(doc))
    logger.debug("document_updated", collection=collection, doc_id=doc_id, fields=sorted(fields))
    return doc


async def delete_document(collection: str, doc_id: str) -> bool:
    """Delete a document. Returns True if it existed."""
    client = require_redis()
    deleted = await client.delete(_doc_key(collection, doc_id))
    await client.srem(_ids_key(collection), doc_id)
    if deleted:
        logger.debug("document_deleted", collection=collection, doc_id=doc_id)
    return bool(deleted)
