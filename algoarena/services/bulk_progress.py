from __future__ import annotations

from pydantic import TypeAdapter

from algoarena.models.summaries import BulkProgressSnapshot, ProgressEntry
from algoarena.repos.progress_repo import ProgressRepo
from algoarena.services import cache_keys
from algoarena.services.cache_aside import CacheAside
from algoarena.services.progress_stats import Clock, ProgressStatsCalculator, utcnow

_SNAPSHOT = TypeAdapter(BulkProgressSnapshot)


class BulkProgressService:
    """Every progress record of one user plus their stats, as one cache entry.

    The snapshot is rebuilt wholesale on a miss and never patched in place;
    a progress write evicts it (see services/invalidation.py).
    """

    def __init__(
        self,
        progress: ProgressRepo,
        stats: ProgressStatsCalculator,
        cache: CacheAside,
        *,
        ttl_seconds: int,
        clock: Clock = utcnow,
    ) -> None:
        self._progress = progress
        self._stats = stats
        self._cache = cache
        self._ttl = ttl_seconds
        self._clock = clock

    async def get_bulk_progress(self, user_id: str) -> BulkProgressSnapshot:
        return await self._cache.get_or_compute(
            cache_keys.bulk_progress(user_id),
            self._ttl,
            lambda: self.compute(user_id),
            _SNAPSHOT,
        )

    async def compute(self, user_id: str) -> BulkProgressSnapshot:
        # One fetch feeds both the map and the stats.
        records = await self._progress.find_by_user(user_id)
        progress_map = {
            r.question_id: ProgressEntry(solved=r.solved, level=r.level, solved_at=r.solved_at)
            for r in records
        }
        return BulkProgressSnapshot(
            user_id=user_id,
            progress_map=progress_map,
            stats=await self._stats.stats_from_records(records),
            last_computed=self._clock(),
        )
