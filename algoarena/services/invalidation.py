"""Which cache entries a write must drop.

Two entry points, one per kind of write:

  on_progress_write(user_id)
      A user's solved state changed.  Only that user's derived views are
      stale: bulk snapshot, stats, category list, question list pages and
      point "is solved" entries.  The global aggregate moves too.

  on_catalog_write(scope)
      A category or question was created, changed or deleted.  Totals
      and category shapes change for EVERY user, and question deletes
      cascade into progress records.  All derived views are dropped for
      all users.  Catalog writes are rare admin actions, so tracking
      exactly which users are affected is not worth the bookkeeping.

Callers persist and commit first, then invalidate, then report success.
Evicting before the commit would leave a window where a concurrent read
recomputes from the old data and caches it again.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from algoarena.core.metrics import CACHE_INVALIDATIONS
from algoarena.services import cache_keys
from algoarena.services.cache_aside import CacheAside

logger = logging.getLogger(__name__)


class CatalogScope(StrEnum):
    CATEGORY = "category"
    QUESTION = "question"


class CacheInvalidationCoordinator:
    def __init__(self, cache: CacheAside) -> None:
        self._cache = cache

    async def on_progress_write(self, user_id: str) -> None:
        await self._cache.evict(cache_keys.bulk_progress(user_id))
        await self._cache.evict(cache_keys.stats(user_id))
        await self._cache.evict(cache_keys.categories(user_id))
        await self._cache.evict(cache_keys.GLOBAL_STATS)
        await self._cache.evict_prefix(cache_keys.solved_prefix(user_id))
        await self._cache.evict_prefix(cache_keys.questions_prefix(user_id))
        CACHE_INVALIDATIONS.labels(trigger="progress").inc()
        logger.debug("Invalidated progress views", extra={"user_id": user_id})

    async def on_catalog_write(self, scope: CatalogScope) -> None:
        for prefix in (
            cache_keys.CATEGORIES,
            cache_keys.QUESTIONS,
            cache_keys.BULK_PROGRESS,
            cache_keys.STATS,
            cache_keys.SOLVED,
        ):
            await self._cache.evict_prefix(prefix)
        await self._cache.evict(cache_keys.GLOBAL_STATS)
        CACHE_INVALIDATIONS.labels(trigger=scope.value).inc()
        logger.info("Catalog %s write: dropped derived progress views for all users", scope)
