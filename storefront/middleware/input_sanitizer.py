"""Input sanitizer middleware: strips NoSQL operators and HTML from request input."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from storefront.config.loader import get_settings
from storefront.config.query_operators import get_denylist, is_operator_key
from storefront.middleware.pipeline import Middleware, RequestContext
from storefront.utils.sanitize import escape_html, strip_control_chars, strip_html_tags

logger = structlog.get_logger()

# Credentials are hashed downstream and must reach the handler byte-for-byte
_PASSTHROUGH_KEYS = frozenset({"password", "adminPassword"})

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Longest dropped key echoed into logs
_MAX_LOGGED_KEY_LENGTH = 64


def prevent_nosql_injection(
    value: Any,
    denylist: frozenset[str] | None = None,
    dropped: list[str] | None = None,
) -> Any:
    """Return a copy of ``value`` with every query-operator key removed.

    Operator keys are dropped together with their whole value subtree.
    Keys removed are appended to ``dropped`` when a list is given.
    """
    if denylist is None:
        denylist = get_denylist()
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            if isinstance(key, str) and is_operator_key(key, denylist):
                if dropped is not None:
                    dropped.append(key)
                continue
            cleaned[key] = prevent_nosql_injection(item, denylist, dropped)
        return cleaned
    if isinstance(value, (list, tuple)):
        return [prevent_nosql_injection(item, denylist, dropped) for item in value]
    return value


def sanitize_string(value: str) -> str:
    """Strip tags, escape HTML-significant characters, then trim."""
    return escape_html(strip_html_tags(value)).strip()


def sanitize_object(value: Any) -> Any:
    """Return a copy of ``value`` with every string scalar XSS-sanitized."""
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, dict):
        return {
            key: item if key in _PASSTHROUGH_KEYS else sanitize_object(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize_object(item) for item in value]
    return value


def sanitize_input(
    value: Any,
    denylist: frozenset[str] | None = None,
    dropped: list[str] | None = None,
) -> Any:
    """Run the NoSQL pass and then the XSS pass over one input container.

    The operator check must see raw keys, so it always runs first.
    """
    return sanitize_object(prevent_nosql_injection(value, denylist, dropped))


def _multi_to_tree(items: list[tuple[str, str]]) -> dict[str, Any]:
    """Fold multi-valued pairs into a mapping; repeated keys become lists."""
    tree: dict[str, Any] = {}
    for key, value in items:
        if key in tree:
            existing = tree[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                tree[key] = [existing, value]
        else:
            tree[key] = value
    return tree


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _is_form(content_type: str) -> bool:
    return content_type.split(";", 1)[0].strip().lower() == _FORM_CONTENT_TYPE


class InputSanitizer(Middleware):
    """Sanitize body, query string and path params before any handler runs.

    - JSON and URL-encoded bodies are decoded, cleaned and re-encoded as JSON
    - Other bodies (multipart, binary) pass through untouched
    - Oversized bodies are rejected with 413, on Content-Length when declared
    - Any failure while decoding or walking the input yields 400
    """

    async def process_request(self, request: Request, context: RequestContext) -> Response | None:
        settings = get_settings()
        # Reject on the declared length before buffering anything
        declared = request.headers.get("content-length")
        if declared:
            try:
                declared_length = int(declared)
            except ValueError:
                logger.warning("invalid_content_length", value=declared[:32])
                return JSONResponse(status_code=400, content={"message": "Invalid input data"})
            if declared_length > settings.max_body_bytes:
                logger.warning("request_body_too_large", size=declared_length, max=settings.max_body_bytes)
                return JSONResponse(status_code=413, content={"message": "Request body too large"})

        raw_body = await request.body()
        if len(raw_body) > settings.max_body_bytes:
            logger.warning("request_body_too_large", size=len(raw_body), max=settings.max_body_bytes)
            return JSONResponse(status_code=413, content={"message": "Request body too large"})

        denylist = get_denylist(settings.query_operator_profile)
        dropped: list[str] = []
        try:
            context.body, context.body_bytes = self._sanitize_body(request, raw_body, denylist, dropped)
            context.query = sanitize_input(
                _multi_to_tree(request.query_params.multi_items()), denylist, dropped
            )
            context.params = sanitize_input(dict(request.path_params), denylist, dropped)
        except Exception:
            logger.warning("input_sanitization_failed", path=request.url.path, exc_info=True)
            return JSONResponse(status_code=400, content={"message": "Invalid input data"})

        if dropped:
            logger.warning(
                "nosql_operator_dropped",
                path=request.url.path,
                keys=[strip_control_chars(key)[:_MAX_LOGGED_KEY_LENGTH] for key in dropped],
            )
        return None

    def _sanitize_body(
        self,
        request: Request,
        raw_body: bytes,
        denylist: frozenset[str],
        dropped: list[str],
    ) -> tuple[Any, bytes]:
        """Return the sanitized body tree and its re-encoded bytes."""
        if not raw_body:
            return None, raw_body

        content_type = request.headers.get("content-type", "")
        if _is_json(content_type):
            body = sanitize_input(json.loads(raw_body), denylist, dropped)
            return body, json.dumps(body).encode("utf-8")
        if _is_form(content_type):
            pairs = parse_qsl(raw_body.decode("utf-8"), keep_blank_values=True, strict_parsing=False)
            body = sanitize_input(_multi_to_tree(pairs), denylist, dropped)
            return body, json.dumps(body).encode("utf-8")
        return None, raw_body
