"""Per-category question totals and user progress, for every category.

Three fetches, whatever the number of categories:

    categories   all, ordered by name
    questions    all
    progress     the user's solved records

The solved question ids go into a set; each category's questions are then
counted by level and checked against that set in memory.  Asking the
store "how many did this user solve in category C" per category is the
N+1 pattern this replaces.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from pydantic import TypeAdapter

from algoarena.core.errors import NotFound
from algoarena.models.catalog import Category, Question
from algoarena.models.summaries import (
    CategorySummary,
    CategoryUserProgress,
    LevelCounts,
    QuestionTotals,
    percentage,
)
from algoarena.repos.catalog_repo import CatalogReader
from algoarena.repos.progress_repo import ProgressRepo
from algoarena.services import cache_keys
from algoarena.services.cache_aside import CacheAside

_SUMMARIES = TypeAdapter(list[CategorySummary])


def summarize_category(
    category: Category, questions: Iterable[Question], solved_ids: set[str]
) -> CategorySummary:
    questions = list(questions)
    solved = [q for q in questions if q.id in solved_ids]
    solved_by_level = LevelCounts.tally(q.level for q in solved)
    return CategorySummary(
        id=category.id,
        name=category.name,
        created_by_id=category.created_by_id,
        question_totals=QuestionTotals(
            total=len(questions),
            by_level=LevelCounts.tally(q.level for q in questions),
        ),
        user_progress=CategoryUserProgress(
            solved=len(solved),
            solved_by_level=solved_by_level,
            progress_percentage=percentage(len(solved), len(questions)),
        ),
    )


class CategoryProgressCalculator:
    def __init__(
        self,
        catalog: CatalogReader,
        progress: ProgressRepo,
        cache: CacheAside,
        *,
        ttl_seconds: int,
    ) -> None:
        self._catalog = catalog
        self._progress = progress
        self._cache = cache
        self._ttl = ttl_seconds

    async def get_categories_with_progress(self, user_id: str) -> list[CategorySummary]:
        return await self._cache.get_or_compute(
            cache_keys.categories(user_id),
            self._ttl,
            lambda: self.compute(user_id),
            _SUMMARIES,
        )

    async def compute(self, user_id: str) -> list[CategorySummary]:
        categories = await self._catalog.all_categories()
        questions = await self._catalog.all_questions()
        solved_ids = {r.question_id for r in await self._progress.find_by_user_solved(user_id)}

        by_category: dict[str, list[Question]] = defaultdict(list)
        for question in questions:
            by_category[question.category_id].append(question)

        summaries = [
            summarize_category(c, by_category.get(c.id, ()), solved_ids) for c in categories
        ]
        summaries.sort(key=lambda s: s.name.lower())
        return summaries

    async def get_category_progress(self, user_id: str, category_id: str) -> CategorySummary:
        """One category; its question ids bound the progress fetch."""
        category = await self._catalog.get_category(category_id)
        if category is None:
            raise NotFound("category", category_id)
        questions = await self._catalog.questions_by_category(category_id)
        records = await self._progress.find_by_user_and_questions(
            user_id, [q.id for q in questions]
        )
        solved_ids = {r.question_id for r in records if r.solved}
        return summarize_category(category, questions, solved_ids)
