"""Derived read models.

Everything here is computed from the stores on demand and cached as
JSON, never persisted as a source of truth.  They are pydantic models so
the same type serves as the cache encoding and the API response body.
"""

from __future__ import annotations

import datetime
from collections import Counter
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from algoarena.models.catalog import Level


_CENT = Decimal("0.01")


def percentage(part: int, whole: int) -> float:
    """part/whole as a percentage rounded half up to 2 decimals; 0.0 when whole is 0."""
    if whole <= 0:
        return 0.0
    exact = Decimal(part * 100) / Decimal(whole)
    return float(exact.quantize(_CENT, rounding=ROUND_HALF_UP))


class LevelCounts(BaseModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0

    @classmethod
    def tally(cls, levels: Iterable[Level]) -> LevelCounts:
        counts = Counter(levels)
        return cls(
            easy=counts[Level.EASY],
            medium=counts[Level.MEDIUM],
            hard=counts[Level.HARD],
        )

    def get(self, level: Level) -> int:
        return getattr(self, level.key)


class LevelPercentages(BaseModel):
    easy: float = 0.0
    medium: float = 0.0
    hard: float = 0.0

    @classmethod
    def of(cls, solved: LevelCounts, totals: LevelCounts) -> LevelPercentages:
        return cls(
            **{
                level.key: percentage(solved.get(level), totals.get(level))
                for level in Level
            }
        )


class ProgressStats(BaseModel):
    total_solved: int
    total_questions: int
    progress_percentage: float
    solved_by_level: LevelCounts
    total_by_level: LevelCounts
    progress_by_level: LevelPercentages
    streak: int = 0
    recent_solved: int = 0


class ProgressEntry(BaseModel):
    solved: bool
    level: Level
    solved_at: datetime.datetime | None = None


class BulkProgressSnapshot(BaseModel):
    user_id: str
    progress_map: dict[str, ProgressEntry]
    stats: ProgressStats
    last_computed: datetime.datetime


class QuestionTotals(BaseModel):
    total: int
    by_level: LevelCounts


class CategoryUserProgress(BaseModel):
    solved: int
    solved_by_level: LevelCounts
    progress_percentage: float


class CategorySummary(BaseModel):
    id: str
    name: str
    created_by_id: str | None = None
    question_totals: QuestionTotals
    user_progress: CategoryUserProgress


class PageFilter(BaseModel):
    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1, le=100)
    category_id: str | None = None
    level: Level | None = None
    search: str | None = None

    @property
    def normalized_search(self) -> str | None:
        if self.search is None:
            return None
        return self.search.strip() or None

    def cache_suffix(self) -> str:
        return ":".join(
            [
                str(self.page),
                str(self.size),
                self.category_id or "",
                self.level.value if self.level else "",
                (self.normalized_search or "").lower(),
            ]
        )


class QuestionProgressSummary(BaseModel):
    solved: bool = False
    solved_at: datetime.datetime | None = None
    approach_count: int = 0


class QuestionSummary(BaseModel):
    id: str
    title: str
    category_id: str
    category_name: str
    level: Level
    created_at: datetime.datetime
    user_progress: QuestionProgressSummary


class QuestionPage(BaseModel):
    items: list[QuestionSummary]
    page: int
    size: int
    total_elements: int
    total_pages: int


class GlobalStats(BaseModel):
    total_solved_globally: int
    active_users: int
    average_questions_per_user: float


class RecentSolvedQuestion(BaseModel):
    question_id: str
    title: str
    category_name: str
    level: Level
    solved_at: datetime.datetime
