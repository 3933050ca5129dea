"""Cache backends for the progress read models.

The progress subsystem only needs four operations from a cache: get,
set-with-TTL, delete one key, and delete every key under a prefix.
`CacheService` is that contract; the rest of the code never imports a
concrete backend, it receives one (see api/dependencies.py).

KEY LAYOUT
----------
Keys are `namespace:user_id[:extra]`, namespace first:

  progress:bulk:{user}                  bulk snapshot
  progress:stats:{user}                 stats
  progress:solved:{user}:{question}     point "is solved" entries
  categories:progress:{user}            category list with progress
  questions:summary:{user}:{filter...}  question list pages

Namespace-first means both "everything for user X in this namespace" and
"this namespace for every user" are a single prefix delete.  Writers for
different users never touch the same key.

TTL + EXPLICIT INVALIDATION
---------------------------
Every entry has a TTL as a safety net; write paths evict explicitly (see
services/invalidation.py) so the common case is fresh immediately.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from algoarena.db.redis import redis_pool


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...

    async def delete_prefix(self, prefix: str) -> None:
        """Delete every key that starts with prefix (e.g. 'progress:solved:u1:')."""
        ...


class InMemoryCacheService:
    """Process-local cache with TTL enforcement.

    Used in tests and when REDIS_URL is not set.  The clock is injectable
    so tests can expire entries without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[str, float]] = {}
        self._clock = clock

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_prefix(self, prefix: str) -> None:
        keys_to_delete = [k for k in self._store if k.startswith(prefix)]
        for k in keys_to_delete:
            del self._store[k]


_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def _glob_escape(text: str) -> str:
    """Escape Redis MATCH metacharacters so a prefix is matched literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisCacheService:
    """Redis-backed cache, shared by every API instance."""

    # Keeps cache keys apart from anything else living in the same Redis
    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_prefix(self, prefix: str) -> None:
        # SCAN, not KEYS: KEYS blocks the server while it walks the whole
        # keyspace.  SCAN may miss keys created mid-iteration; those were
        # computed after the write being invalidated, so they are fresh.
        match = f"{_glob_escape(self._PREFIX + prefix)}*"
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(cursor, match=match, count=200)
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
