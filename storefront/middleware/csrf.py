"""CSRF double-submit cookie: token issuance middleware and per-route validation."""

from __future__ import annotations

import hmac
import secrets

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from storefront.config.loader import get_settings
from storefront.middleware.pipeline import Middleware, RequestContext

logger = structlog.get_logger()

# Token length in bytes (32 bytes = 64 hex chars)
_TOKEN_BYTES = 32

# Read-only methods never carry state changes
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def generate_csrf_token() -> str:
    """Generate a cryptographically secure CSRF token."""
    return secrets.token_hex(_TOKEN_BYTES)


class CsrfError(Exception):
    """A mutating request failed double-submit validation."""

    status_code = 403

    def __init__(self, message: str, error: str) -> None:
        super().__init__(message)
        self.message = message
        self.error = error

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content={"message": self.message, "error": self.error},
        )


class CsrfCookieMissing(CsrfError):
    def __init__(self) -> None:
        super().__init__(
            "CSRF token missing from cookie",
            "CSRF protection: Token cookie not found",
        )


class CsrfHeaderMissing(CsrfError):
    def __init__(self) -> None:
        super().__init__(
            "CSRF token missing from header",
            "CSRF protection: Please include X-CSRF-Token header in your request",
        )


class CsrfTokenMismatch(CsrfError):
    def __init__(self) -> None:
        super().__init__(
            "CSRF token mismatch",
            "CSRF protection: Token validation failed. Tokens do not match.",
        )


def check_csrf_tokens(method: str, cookie_token: str | None, header_token: str | None) -> None:
    """Validate a double-submit token pair, raising ``CsrfError`` on failure.

    Safe methods always pass. The comparison is exact, with no
    normalization of either side.
    """
    if method.upper() in SAFE_METHODS:
        return
    if not cookie_token:
        raise CsrfCookieMissing()
    if not header_token:
        raise CsrfHeaderMissing()
    if not hmac.compare_digest(cookie_token.encode(), header_token.encode()):
        raise CsrfTokenMismatch()


async def require_csrf_token(request: Request) -> None:
    """Route dependency guarding state-changing endpoints."""
    settings = get_settings()
    cookie_token = request.cookies.get(settings.csrf_cookie_name)
    # Starlette header lookup is case-insensitive, so this covers every casing
    header_token = request.headers.get(settings.csrf_header_name)
    try:
        check_csrf_tokens(request.method, cookie_token, header_token)
    except CsrfError as exc:
        logger.warning(
            "csrf_validation_failed",
            reason=exc.__class__.__name__,
            method=request.method,
            path=request.url.path,
        )
        raise


class CsrfTokenIssuer(Middleware):
    """Make sure every client holds a CSRF token.

    - Reuses the ``csrf-token`` cookie when present (no rotation)
    - Otherwise mints a fresh token and sets it as a cookie readable by
      client script (not HttpOnly), Secure, SameSite=None, 24h, path ``/``
    - Mirrors the active token into the ``X-CSRF-Token`` response header
    - Never rejects a request
    """

    async def process_request(self, request: Request, context: RequestContext) -> Response | None:
        settings = get_settings()
        existing = request.cookies.get(settings.csrf_cookie_name)
        if existing:
            context.csrf_token = existing
            context.csrf_issued = False
            return None

        context.csrf_token = generate_csrf_token()
        context.csrf_issued = True
        logger.debug("csrf_token_issued")
        return None

    async def process_response(self, response: Response, context: RequestContext) -> Response:
        if not context.csrf_token:
            # Request stage never ran (an earlier stage short-circuited)
            return response

        settings = get_settings()
        if context.csrf_issued:
            response.set_cookie(
                settings.csrf_cookie_name,
                context.csrf_token,
                max_age=settings.csrf_max_age,
                path="/",
                secure=settings.csrf_cookie_secure,
                httponly=False,
                samesite=settings.csrf_cookie_samesite,
            )
        response.headers[settings.csrf_header_name] = context.csrf_token
        return response
