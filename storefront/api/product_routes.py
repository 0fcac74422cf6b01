"""Product CRUD endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import require_admin
from storefront.middleware.csrf import require_csrf_token
from storefront.middleware.route import PipelineRoute
from storefront.models.product import ProductCreate, ProductUpdate
from storefront.store import products as product_store

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["products"], route_class=PipelineRoute)


# --- Admin endpoints ---

@router.post("/createProduct", status_code=201, dependencies=[Depends(require_csrf_token)])
async def create_product(body: ProductCreate, admin: dict[str, Any] = Depends(require_admin)):
    """Create a product owned by the calling admin."""
    product = await product_store.create_product(admin["id"], body.model_dump())
    logger.info("product_created", product_id=product["id"], owner_id=admin["id"])
    return {"message": "Product created successfully", "product": product}


@router.get("/admin-products-list")
async def admin_products_list(admin: dict[str, Any] = Depends(require_admin)):
    """List the products the calling admin created."""
    products = await product_store.list_products(owner_id=admin["id"])
    return {"products": products}


@router.put("/update-product/{product_id}", dependencies=[Depends(require_csrf_token)])
async def update_product(
    product_id: str,
    body: ProductUpdate,
    admin: dict[str, Any] = Depends(require_admin),
):
    """Update one of the calling admin's products."""
    fields = body.model_dump(exclude_none=True)
    product = await product_store.update_product(product_id, admin["id"], fields)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("product_updated", product_id=product_id, fields=sorted(fields))
    return {"message": "Product updated successfully", "product": product}


@router.delete("/delete-product/{product_id}", dependencies=[Depends(require_csrf_token)])
async def delete_product(product_id: str, admin: dict[str, Any] = Depends(require_admin)):
    """Delete one of the calling admin's products."""
    deleted = await product_store.delete_product(product_id, admin["id"])
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("product_deleted", product_id=product_id)
    return {"message": "Product deleted successfully"}


# --- Public catalogue ---

@router.get("/products")
async def list_products():
    """List every product."""
    return {"products": await product_store.list_products()}


@router.get("/products/{product_id}")
async def get_product(product_id: str):
    """Fetch one product."""
    product = await product_store.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"product": product}
