"""Redis connection backing the document store.

The pool is opened once at startup. Until it exists (or after Redis
refused every connection attempt) store calls raise ``StoreUnavailable``,
which routes answer with 503.
"""

from __future__ import annotations

import asyncio
import re

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from storefront.config.loader import StorefrontSettings

logger = structlog.get_logger()

# Connection health as reported by ping()
STATUS_UP = "up"
STATUS_UNREACHABLE = "unreachable"
STATUS_NOT_CONNECTED = "not_connected"

_CONNECT_ATTEMPTS = 5
_FIRST_RETRY_DELAY = 0.5

_URL_PASSWORD = re.compile(r"(rediss?://[^:]*:)[^@]+(@)")

_pool: aioredis.Redis | None = None


class StoreUnavailable(Exception):
    """Raised when a store call is made without a Redis connection."""
    pass


def _redact_url(url: str) -> str:
    return _URL_PASSWORD.sub(r"\1***\2", url)


async def _open(settings: StorefrontSettings) -> aioredis.Redis:
    """Open a pool and prove it with one PING; close it again on failure."""
    client = aioredis.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
        socket_connect_timeout=5,
    )
    try:
        await client.ping()
    except BaseException:
        await client.aclose()
        raise
    return client


async def init_redis(settings: StorefrontSettings) -> aioredis.Redis | None:
    """Connect to ``settings.redis_url``, doubling the wait between attempts.

    Returns None when Redis never answered; the service keeps running and
    store-backed routes report 503.
    """
    global _pool
    url = _redact_url(settings.redis_url)
    delay = _FIRST_RETRY_DELAY
    for attempt in range(1, _CONNECT_ATTEMPTS + 1):
        try:
            _pool = await _open(settings)
        except (RedisError, OSError) as exc:
            if attempt == _CONNECT_ATTEMPTS:
                logger.error("redis_connect_failed", url=url, attempts=attempt, error=str(exc))
                _pool = None
                return None
            logger.warning("redis_connect_retry", url=url, attempt=attempt, delay=delay, error=str(exc))
            await asyncio.sleep(delay)
            delay *= 2
        else:
            logger.info("redis_connected", url=url, pool_size=settings.redis_pool_size)
            return _pool
    return None


def require_redis() -> aioredis.Redis:
    """Return the pool or raise ``StoreUnavailable``."""
    if _pool is None:
        raise StoreUnavailable()
    return _pool


async def ping() -> str:
    """Report connection health: up, unreachable, or not_connected."""
    if _pool is None:
        return STATUS_NOT_CONNECTED
    try:
        await _pool.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis_ping_failed", error=str(exc))
        return STATUS_UNREACHABLE
    return STATUS_UP


async def close_redis() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None
        logger.info("redis_closed")
