"""APIRoute subclass that runs every routed request through the pipeline."""

from __future__ import annotations

from typing import Any, Callable, Coroutine
from urllib.parse import urlencode

import structlog
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope

from storefront.middleware.csrf import CsrfError
from storefront.middleware.pipeline import MiddlewarePipeline, RequestContext, internal_error_response
from storefront.store.redis import StoreUnavailable

logger = structlog.get_logger()

_JSON_CONTENT_TYPE = b"application/json"


class SanitizedRequest(Request):
    """Request whose body, query string and path params are the sanitized copies."""

    def __init__(self, scope: Scope, receive: Receive, body: bytes) -> None:
        super().__init__(scope, receive)
        # The original stream is already consumed; serve the cached bytes
        self._body = body


def _json_body_headers(headers: list[tuple[bytes, bytes]], length: int) -> list[tuple[bytes, bytes]]:
    kept = [(k, v) for k, v in headers if k.lower() not in (b"content-type", b"content-length")]
    return [*kept, (b"content-type", _JSON_CONTENT_TYPE), (b"content-length", str(length).encode())]


def build_sanitized_request(request: Request, context: RequestContext) -> SanitizedRequest:
    """Rebuild the request from the containers the pipeline left on ``context``.

    A parsed body (JSON or URL-encoded form) always reaches the handler as
    JSON, so body models accept either encoding.
    """
    scope = dict(request.scope)
    scope["query_string"] = urlencode(context.query, doseq=True).encode("latin-1")
    scope["path_params"] = context.params
    body = context.body_bytes if context.body_bytes is not None else b""
    if context.body is not None:
        scope["headers"] = _json_body_headers(list(scope.get("headers", [])), len(body))
    return SanitizedRequest(scope, request.receive, body)


def get_context(request: Request) -> RequestContext:
    """Return the pipeline context bound to this request."""
    return request.state.context


class PipelineRoute(APIRoute):
    """Run the app's request pipeline before dependencies and the endpoint.

    Routing has already happened here, so path params are known. Errors
    raised by the handler are rendered inside the route so the response
    stage still runs on them. GET routes also answer HEAD.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], *, methods: Any = None, **kwargs: Any) -> None:
        if methods and "GET" in {method.upper() for method in methods}:
            methods = {*methods, "HEAD"}
        super().__init__(path, endpoint, methods=methods, **kwargs)

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def pipeline_route_handler(request: Request) -> Response:
            pipeline: MiddlewarePipeline = request.app.state.pipeline
            context = RequestContext()
            request.state.context = context

            structlog.contextvars.clear_contextvars()
            structlog.contextvars.bind_contextvars(request_id=context.request_id)

            short_circuit = await pipeline.process_request(request, context)
            if short_circuit is not None:
                return await pipeline.process_response(short_circuit, context)

            sanitized = build_sanitized_request(request, context)
            try:
                response = await original_route_handler(sanitized)
            except CsrfError as exc:
                response = exc.to_response()
            except StoreUnavailable:
                logger.error("store_unavailable", path=request.url.path)
                response = JSONResponse(status_code=503, content={"detail": "Database unavailable"})
            except HTTPException as exc:
                response = await http_exception_handler(sanitized, exc)
            except RequestValidationError as exc:
                response = await request_validation_exception_handler(sanitized, exc)
            except Exception:
                logger.exception("route_handler_error", method=request.method, path=request.url.path)
                response = internal_error_response()

            logger.debug(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                user_id=context.user_id or None,
            )
            return await pipeline.process_response(response, context)

        return pipeline_route_handler
