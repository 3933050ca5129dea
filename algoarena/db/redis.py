"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a pooled async client is
created at import time; when it is not, `redis_pool` is None and the
cache falls back to the in-memory backend.

Redis only ever holds derived data here (cached snapshots and lists), so
losing it costs latency, never correctness.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from algoarena.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # cached values are JSON text
        max_connections=20,
        # Cache calls are bounded again by asyncio.timeout in cache_aside;
        # these keep a dead server from holding sockets open.
        socket_connect_timeout=1.0,
        socket_timeout=1.0,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for the Redis pool.

    A failed ping on startup is logged and the app still starts: every
    cache failure degrades to computing from the stores.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, using the in-memory cache")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis connection failed on startup; serving uncached")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
