"""Cache-aside read path.

    HIT  → return the cached value
    MISS → compute from the stores → populate → return

Callers see only the final value; no intermediate state escapes.

Failure policy:
  - compute() failing (StoreUnavailable, NotFound, ...) propagates.  The
    cache hides store latency, never store failures.
  - the cache failing or not answering within `timeout_seconds` is
    absorbed: a failed get is a miss, a failed set/delete is skipped.
    Both are logged and counted as cache_operations_total{result="error"}.
  - a cached value that no longer decodes is treated as a miss and
    overwritten by the recomputed value.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from algoarena.core.errors import CacheUnavailable
from algoarena.core.metrics import CACHE_OPERATIONS
from algoarena.services.cache import CacheService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def namespace_of(key: str) -> str:
    """'progress:bulk:u1' → 'progress:bulk' (the metric label)."""
    return ":".join(key.split(":", 2)[:2])


class CacheAside:
    def __init__(self, cache: CacheService, *, timeout_seconds: float) -> None:
        self._cache = cache
        self._timeout = timeout_seconds

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        compute: Callable[[], Awaitable[T]],
        adapter: TypeAdapter[T],
    ) -> T:
        namespace = namespace_of(key)

        cached = await self._read(key, namespace)
        if cached is not None:
            try:
                value = adapter.validate_json(cached)
            except ValidationError:
                logger.warning(
                    "Discarding undecodable cache entry %s", key, extra={"cache_key": key}
                )
                CACHE_OPERATIONS.labels(namespace=namespace, result="error").inc()
            else:
                CACHE_OPERATIONS.labels(namespace=namespace, result="hit").inc()
                return value

        CACHE_OPERATIONS.labels(namespace=namespace, result="miss").inc()
        value = await compute()

        encoded = adapter.dump_json(value).decode()
        try:
            await self._bounded(self._cache.set(key, encoded, ttl_seconds))
        except CacheUnavailable as exc:
            logger.warning(
                "Cache populate skipped for %s: %s", key, exc, extra={"cache_key": key}
            )
        return value

    async def evict(self, key: str) -> None:
        try:
            await self._bounded(self._cache.delete(key))
        except CacheUnavailable as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc, extra={"cache_key": key})

    async def evict_prefix(self, prefix: str) -> None:
        try:
            await self._bounded(self._cache.delete_prefix(prefix))
        except CacheUnavailable as exc:
            logger.warning(
                "Cache prefix delete failed for %s*: %s", prefix, exc, extra={"cache_key": prefix}
            )

    async def _read(self, key: str, namespace: str) -> str | None:
        try:
            return await self._bounded(self._cache.get(key))
        except CacheUnavailable as exc:
            logger.warning(
                "Cache read failed for %s, computing directly: %s",
                key,
                exc,
                extra={"cache_key": key},
            )
            CACHE_OPERATIONS.labels(namespace=namespace, result="error").inc()
            return None

    async def _bounded(self, operation: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(self._timeout):
                return await operation
        except TimeoutError as exc:
            raise CacheUnavailable(f"timed out after {self._timeout}s") from exc
        except Exception as exc:
            # Any backend failure: connection refused, protocol error, ...
            raise CacheUnavailable(f"{exc.__class__.__name__}: {exc}") from exc
