"""Registration, login and session endpoints."""

from __future__ import annotations

import hmac
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from storefront.api.deps import require_user
from storefront.auth.passwords import hash_password, verify_password
from storefront.auth.tokens import create_access_token
from storefront.config.loader import get_settings
from storefront.middleware.csrf import require_csrf_token
from storefront.middleware.route import PipelineRoute
from storefront.models.user import LoginRequest, UserCreate
from storefront.store import users as user_store
from storefront.store.users import DuplicateEmail, public_user

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["users"], route_class=PipelineRoute)


def _admin_password_ok(candidate: str | None) -> bool:
    """Check the shared secret that gates admin self-registration."""
    expected = get_settings().admin_registration_password
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate.encode(), expected.encode())


@router.post("/register", status_code=201, dependencies=[Depends(require_csrf_token)])
async def register(body: UserCreate):
    """Create a user account."""
    if body.role == "admin" and not _admin_password_ok(body.admin_password):
        logger.warning("admin_registration_rejected")
        raise HTTPException(status_code=403, detail="Invalid admin password")

    try:
        user = await user_store.create_user(
            name=body.name,
            email=body.email,
            password_hash=hash_password(body.password),
            role=body.role,
        )
    except DuplicateEmail:
        raise HTTPException(status_code=409, detail="User already exists")

    logger.info("user_registered", user_id=user["id"], role=user["role"])
    return {"message": "User registered successfully", "user": public_user(user)}


@router.post("/login", dependencies=[Depends(require_csrf_token)])
async def login(body: LoginRequest):
    """Verify credentials and hand out a bearer token (body and cookie)."""
    user = await user_store.get_user_by_email(body.email)
    if user is None or not verify_password(body.password, user["password_hash"]):
        logger.info("login_failed")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    settings = get_settings()
    token = create_access_token(user)
    response = JSONResponse(
        content={"message": "Login successful", "token": token, "user": public_user(user)},
    )
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.jwt_expiry_seconds,
        path="/",
        secure=settings.auth_cookie_secure,
        httponly=True,
        samesite=settings.auth_cookie_samesite,
    )
    logger.info("user_logged_in", user_id=user["id"])
    return response


@router.get("/getUserDetails")
async def get_user_details(user: dict[str, Any] = Depends(require_user)):
    """Return the calling user's profile."""
    return {"user": public_user(user)}


@router.get("/logout")
async def logout(user: dict[str, Any] = Depends(require_user)):
    """Clear the auth cookie."""
    settings = get_settings()
    response = JSONResponse(content={"message": "Logged out successfully"})
    response.delete_cookie(
        settings.auth_cookie_name,
        path="/",
        secure=settings.auth_cookie_secure,
        httponly=True,
        samesite=settings.auth_cookie_samesite,
    )
    logger.info("user_logged_out", user_id=user["id"])
    return response
