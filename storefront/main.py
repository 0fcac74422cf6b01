"""FastAPI storefront application."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.cors import CORSMiddleware

from storefront.config.loader import get_settings, load_settings, register_reload_handler
from storefront.health import router as health_router
from storefront.logging_config import setup_logging
from storefront.middleware.csrf import CsrfTokenIssuer
from storefront.middleware.input_sanitizer import InputSanitizer
from storefront.middleware.pipeline import MiddlewarePipeline
from storefront.middleware.route import PipelineRoute
from storefront.store import redis as redis_store

logger = structlog.get_logger()


def _build_pipeline() -> MiddlewarePipeline:
    """Build the ordered request pipeline.

    InputSanitizer runs first so handlers and later stages only ever see
    cleaned input; CsrfTokenIssuer only touches cookies and headers.
    CSRF validation is not a stage: it is a dependency on mutating routes.
    """
    pipeline = MiddlewarePipeline()
    pipeline.add(InputSanitizer())   # 0: NoSQL operators, then XSS
    pipeline.add(CsrfTokenIssuer())  # 1: issue or reuse double-submit token
    return pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings = load_settings()
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)
    if not settings.jwt_secret:
        # Logins could never mint a token
        logger.error("jwt_secret_not_configured")
        raise RuntimeError("STOREFRONT_JWT_SECRET must be set")
    register_reload_handler()

    # Init Redis (non-fatal if unavailable; routes answer 503)
    await redis_store.init_redis(settings)

    logger.info("storefront_started", port=settings.listen_port, pipeline=app.state.pipeline.names)

    yield

    await redis_store.close_redis()
    logger.info("storefront_stopped")


app = FastAPI(title="Storefront API", lifespan=lifespan)
app.router.route_class = PipelineRoute
app.state.pipeline = _build_pipeline()

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-CSRF-Token",
        "X-Requested-With",
        "Accept",
        "Accept-Version",
        "Content-Length",
        "Content-MD5",
        "Date",
        "X-Api-Version",
    ],
    expose_headers=["X-CSRF-Token"],
)

# Mount health/ready endpoints
app.include_router(health_router)


# Import and mount API routers (deferred to keep app setup above in one place)
from storefront.api.api_key_routes import router as api_key_router  # noqa: E402
from storefront.api.product_routes import router as product_router  # noqa: E402
from storefront.api.user_routes import router as user_router  # noqa: E402

app.include_router(user_router)
app.include_router(api_key_router)
app.include_router(product_router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Storefront API is running"


@app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
async def not_found(request: Request, path: str) -> JSONResponse:
    """Catch-all so unknown paths still pass through the pipeline."""
    logger.info("route_not_found", method=request.method, path=request.url.path)
    return JSONResponse(status_code=404, content={"message": "Route not found"})
