"""Progress operations as the API layer sees them.

Reads go through the cache-aside calculators; the one write,
update_progress, follows persist → commit → invalidate.  The service
is cheap to build and is built per request (see api/dependencies.py),
so it always works against that request's Stores.
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from pydantic import TypeAdapter

from algoarena.core.config import SETTINGS, Settings
from algoarena.core.errors import NotFound
from algoarena.core.metrics import PROGRESS_UPDATES
from algoarena.models.progress import ProgressRecord
from algoarena.models.summaries import (
    BulkProgressSnapshot,
    CategorySummary,
    GlobalStats,
    PageFilter,
    ProgressStats,
    QuestionPage,
    RecentSolvedQuestion,
)
from algoarena.repos.stores import Stores
from algoarena.services import cache_keys
from algoarena.services.approach_counts import BulkCountAggregator
from algoarena.services.bulk_progress import BulkProgressService
from algoarena.services.cache import CacheService
from algoarena.services.cache_aside import CacheAside
from algoarena.services.category_progress import CategoryProgressCalculator
from algoarena.services.invalidation import CacheInvalidationCoordinator
from algoarena.services.progress_stats import Clock, ProgressStatsCalculator, utcnow
from algoarena.services.question_listing import QuestionListing

logger = logging.getLogger(__name__)

_STATS = TypeAdapter(ProgressStats)
_SOLVED = TypeAdapter(bool)
_GLOBAL = TypeAdapter(GlobalStats)


class ProgressService:
    def __init__(
        self,
        stores: Stores,
        cache: CacheService,
        *,
        settings: Settings = SETTINGS,
        clock: Clock = utcnow,
    ) -> None:
        self._stores = stores
        self._settings = settings
        self._clock = clock

        self._cache = CacheAside(cache, timeout_seconds=settings.cache_timeout_seconds)
        self.invalidation = CacheInvalidationCoordinator(self._cache)
        self.stats = ProgressStatsCalculator(
            stores.progress,
            stores.catalog,
            streak_lookback=settings.streak_lookback,
            recent_window_days=settings.recent_window_days,
            clock=clock,
        )
        self.bulk = BulkProgressService(
            stores.progress,
            self.stats,
            self._cache,
            ttl_seconds=settings.cache_ttl_progress,
            clock=clock,
        )
        self.categories = CategoryProgressCalculator(
            stores.catalog,
            stores.progress,
            self._cache,
            ttl_seconds=settings.cache_ttl_categories,
        )
        self.approach_counts = BulkCountAggregator(stores.approaches)
        self.listing = QuestionListing(
            stores.catalog,
            stores.progress,
            self.approach_counts,
            self._cache,
            ttl_seconds=settings.cache_ttl_questions,
        )

    # --- cached read models ---

    async def get_bulk_progress(self, user_id: str) -> BulkProgressSnapshot:
        return await self.bulk.get_bulk_progress(user_id)

    async def get_stats(self, user_id: str) -> ProgressStats:
        return await self._cache.get_or_compute(
            cache_keys.stats(user_id),
            self._settings.cache_ttl_stats,
            lambda: self.stats.compute_stats(user_id),
            _STATS,
        )

    async def get_categories_with_progress(self, user_id: str) -> list[CategorySummary]:
        return await self.categories.get_categories_with_progress(user_id)

    async def get_category_progress(self, user_id: str, category_id: str) -> CategorySummary:
        return await self.categories.get_category_progress(user_id, category_id)

    async def get_questions_with_progress(
        self, user_id: str, page_filter: PageFilter
    ) -> QuestionPage:
        return await self.listing.get_questions_with_progress(user_id, page_filter)

    async def get_bulk_approach_counts(
        self, user_id: str, question_ids: Collection[str]
    ) -> dict[str, int]:
        return await self.approach_counts.get_bulk_approach_counts(user_id, question_ids)

    async def is_question_solved(self, user_id: str, question_id: str) -> bool:
        async def _lookup() -> bool:
            record = await self._stores.progress.find_by_user_and_question(
                user_id, question_id
            )
            return record is not None and record.solved

        return await self._cache.get_or_compute(
            cache_keys.solved(user_id, question_id),
            self._settings.cache_ttl_progress,
            _lookup,
            _SOLVED,
        )

    async def get_global_stats(self) -> GlobalStats:
        return await self._cache.get_or_compute(
            cache_keys.GLOBAL_STATS,
            self._settings.cache_ttl_stats,
            self._compute_global_stats,
            _GLOBAL,
        )

    async def _compute_global_stats(self) -> GlobalStats:
        total_solved = await self._stores.progress.count_total_solved()
        active_users = await self._stores.progress.count_distinct_solvers()
        average = round(total_solved / active_users, 2) if active_users else 0.0
        return GlobalStats(
            total_solved_globally=total_solved,
            active_users=active_users,
            average_questions_per_user=average,
        )

    # --- uncached reads ---

    async def get_progress(self, user_id: str, question_id: str) -> ProgressRecord | None:
        return await self._stores.progress.find_by_user_and_question(user_id, question_id)

    async def get_bulk_progress_status(
        self, user_id: str, question_ids: Collection[str]
    ) -> dict[str, bool]:
        status = dict.fromkeys(question_ids, False)
        if not status:
            return {}
        for record in await self._stores.progress.find_by_user_and_questions(
            user_id, list(status)
        ):
            status[record.question_id] = record.solved
        return status

    async def get_recent_solved_questions(
        self, user_id: str, limit: int = 10
    ) -> list[RecentSolvedQuestion]:
        records = await self._stores.progress.find_recent_solved(user_id, limit)
        if not records:
            return []
        questions = {
            q.id: q
            for q in await self._stores.catalog.questions_by_ids(
                [r.question_id for r in records]
            )
        }
        names = {c.id: c.name for c in await self._stores.catalog.all_categories()}

        recent = []
        for record in records:
            question = questions.get(record.question_id)
            if question is None or record.solved_at is None:
                continue
            recent.append(
                RecentSolvedQuestion(
                    question_id=question.id,
                    title=question.title,
                    category_name=names.get(question.category_id, ""),
                    level=record.level,
                    solved_at=record.solved_at,
                )
            )
        return recent

    # --- writes ---

    async def update_progress(
        self, user_id: str, question_id: str, solved: bool
    ) -> ProgressRecord:
        question = await self._stores.catalog.get_question(question_id)
        if question is None:
            raise NotFound("question", question_id)
        if await self._stores.users.get_by_id(user_id) is None:
            raise NotFound("user", user_id)

        candidate = ProgressRecord.mark(
            user_id=user_id,
            question_id=question_id,
            level=question.level,
            solved=solved,
            now=self._clock(),
        )
        stored = await self._stores.progress.upsert(candidate)
        await self._stores.commit()
        await self.invalidation.on_progress_write(user_id)

        PROGRESS_UPDATES.labels(solved=str(solved).lower()).inc()
        logger.info(
            "Progress updated: question=%s solved=%s",
            question_id,
            solved,
            extra={"user_id": user_id},
        )
        return stored
