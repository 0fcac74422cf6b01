"""API key management endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import require_user
from storefront.middleware.csrf import require_csrf_token
from storefront.middleware.route import PipelineRoute
from storefront.models.api_key import ApiKeyCreate
from storefront.store import api_keys as key_store

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["api-keys"], route_class=PipelineRoute)


@router.get("/getApiKeys")
async def get_api_keys(user: dict[str, Any] = Depends(require_user)):
    """List the caller's API keys."""
    keys = await key_store.list_api_keys(user["id"])
    return {"apiKeys": keys}


@router.post("/generateNewApiKey", status_code=201, dependencies=[Depends(require_csrf_token)])
async def generate_new_api_key(
    body: ApiKeyCreate | None = None,
    user: dict[str, Any] = Depends(require_user),
):
    """Mint a new API key for the caller."""
    name = body.name if body is not None else ""
    doc = await key_store.create_api_key(user["id"], name=name)
    logger.info("api_key_created", user_id=user["id"])
    return {"message": "API key generated successfully", "apiKey": doc}


@router.delete("/deleteApiKey/{api_key}", dependencies=[Depends(require_csrf_token)])
async def delete_api_key(api_key: str, user: dict[str, Any] = Depends(require_user)):
    """Revoke one of the caller's API keys."""
    deleted = await key_store.delete_api_key(api_key, user["id"])
    if not deleted:
        raise HTTPException(status_code=404, detail="API key not found")
    logger.info("api_key_deleted", user_id=user["id"])
    return {"message": "API key deleted successfully"}
