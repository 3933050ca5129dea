from __future__ import annotations

import math

from pydantic import TypeAdapter

from algoarena.models.summaries import (
    PageFilter,
    QuestionPage,
    QuestionProgressSummary,
    QuestionSummary,
)
from algoarena.repos.catalog_repo import CatalogReader
from algoarena.repos.progress_repo import ProgressRepo
from algoarena.services import cache_keys
from algoarena.services.approach_counts import BulkCountAggregator
from algoarena.services.cache_aside import CacheAside

_PAGE = TypeAdapter(QuestionPage)


class QuestionListing:
    """A page of questions, each annotated with the caller's progress.

    Four store round trips per page regardless of its size: the page
    itself, the category names, the user's progress for the page's ids,
    and one bulk approach count.
    """

    def __init__(
        self,
        catalog: CatalogReader,
        progress: ProgressRepo,
        approach_counts: BulkCountAggregator,
        cache: CacheAside,
        *,
        ttl_seconds: int,
    ) -> None:
        self._catalog = catalog
        self._progress = progress
        self._approach_counts = approach_counts
        self._cache = cache
        self._ttl = ttl_seconds

    async def get_questions_with_progress(
        self, user_id: str, page_filter: PageFilter
    ) -> QuestionPage:
        return await self._cache.get_or_compute(
            cache_keys.questions(user_id, page_filter),
            self._ttl,
            lambda: self.compute(user_id, page_filter),
            _PAGE,
        )

    async def compute(self, user_id: str, page_filter: PageFilter) -> QuestionPage:
        questions, total = await self._catalog.find_questions(page_filter)
        total_pages = math.ceil(total / page_filter.size) if total else 0
        if not questions:
            return QuestionPage(
                items=[],
                page=page_filter.page,
                size=page_filter.size,
                total_elements=total,
                total_pages=total_pages,
            )

        ids = [q.id for q in questions]
        names = {c.id: c.name for c in await self._catalog.all_categories()}
        progress = {
            r.question_id: r
            for r in await self._progress.find_by_user_and_questions(user_id, ids)
        }
        counts = await self._approach_counts.get_bulk_approach_counts(user_id, ids)

        items = []
        for question in questions:
            record = progress.get(question.id)
            items.append(
                QuestionSummary(
                    id=question.id,
                    title=question.title,
                    category_id=question.category_id,
                    category_name=names.get(question.category_id, ""),
                    level=question.level,
                    created_at=question.created_at,
                    user_progress=QuestionProgressSummary(
                        solved=record is not None and record.solved,
                        solved_at=record.solved_at if record else None,
                        approach_count=counts.get(question.id, 0),
                    ),
                )
            )

        return QuestionPage(
            items=items,
            page=page_filter.page,
            size=page_filter.size,
            total_elements=total,
            total_pages=total_pages,
        )
