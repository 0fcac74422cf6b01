"""Ordered request pipeline framework."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


def internal_error_response() -> JSONResponse:
    """Generic 500 body; the failure detail only goes to the log."""
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@dataclass
class RequestContext:
    """Mutable context passed through the request pipeline."""

    request_id: str = ""
    user_id: str = ""
    csrf_token: str = ""
    csrf_issued: bool = False
    body: Any = None
    body_bytes: bytes | None = None
    query: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.request_id:
            self.request_id = uuid4().hex[:8]


class Middleware(abc.ABC):
    """Base class for a pipeline stage."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abc.abstractmethod
    async def process_request(self, request: Request, context: RequestContext) -> Response | None:
        """Process an incoming request.

        Return None to continue the pipeline, or a Response to short-circuit.
        """
        ...

    async def process_response(self, response: Response, context: RequestContext) -> Response:
        """Process an outgoing response. Override if needed."""
        return response


class MiddlewarePipeline:
    """Ordered list of stages. Executes request handlers forward, response handlers in reverse."""

    def __init__(self) -> None:
        self._middleware: list[Middleware] = []

    def add(self, middleware: Middleware) -> None:
        """Add a stage to the end of the pipeline."""
        self._middleware.append(middleware)
        logger.info("middleware_registered", name=middleware.name)

    @property
    def names(self) -> list[str]:
        return [mw.name for mw in self._middleware]

    async def process_request(self, request: Request, context: RequestContext) -> Response | None:
        """Run request through all stages in order.

        Returns a Response if any stage short-circuits, otherwise None.
        A stage that raises is treated as a short-circuit with a 500.
        """
        for mw in self._middleware:
            try:
                result = await mw.process_request(request, context)
            except Exception:
                logger.exception("middleware_request_error", middleware=mw.name)
                return internal_error_response()
            if isinstance(result, Response):
                logger.info("middleware_short_circuit", middleware=mw.name, status=result.status_code)
                return result
        return None

    async def process_response(self, response: Response, context: RequestContext) -> Response:
        """Run response through all stages in reverse order.

        A stage that raises is logged and skipped so the response survives.
        """
        for mw in reversed(self._middleware):
            try:
                response = await mw.process_response(response, context)
            except Exception:
                logger.exception("middleware_response_error", middleware=mw.name)
        return response
