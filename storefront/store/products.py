"""Product catalogue documents."""

from __future__ import annotations

from typing import Any

from storefront.store.documents import (
    delete_document,
    get_document,
    insert_document,
    list_documents,
    update_document,
)

COLLECTION = "products"


async def create_product(owner_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    return await insert_document(COLLECTION, {**fields, "owner_id": owner_id})


async def get_product(product_id: str) -> dict[str, Any] | None:
    return await get_document(COLLECTION, product_id)


async def list_products(owner_id: str | None = None) -> list[dict[str, Any]]:
    """All products, or only those created by ``owner_id``."""
    if owner_id is None:
        return await list_documents(COLLECTION)
    return await list_documents(COLLECTION, owner_id=owner_id)


async def get_owned_product(product_id: str, owner_id: str) -> dict[str, Any] | None:
    """Fetch a product only if ``owner_id`` created it."""
    product = await get_product(product_id)
    if product is None or product.get("owner_id") != owner_id:
        return None
    return product


async def update_product(product_id: str, owner_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Update an owned product. Returns None if missing or not owned."""
    if await get_owned_product(product_id, owner_id) is None:
        return None
    # Ownership is fixed at creation
    fields = {key: value for key, value in fields.items() if key not in ("id", "owner_id", "created_at")}
    return await update_document(COLLECTION, product_id, fields)


async def delete_product(product_id: str, owner_id: str) -> bool:
    """Delete an owned product. Returns False if missing or not owned."""
    if await get_owned_product(product_id, owner_id) is None:
        return False
    return await delete_document(COLLECTION, product_id)
