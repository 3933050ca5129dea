"""Per-user progress statistics.

    total_solved / total_questions → progress_percentage (0–100, 2 dp)
    solved_by_level vs total_by_level → progress_by_level
    streak          consecutive UTC calendar days with a solve, ending today
    recent_solved   solves within the last RECENT_WINDOW_DAYS

Streak and recent count only look at the user's most recent
STREAK_LOOKBACK solved records (default 30).  That bounds the work per
request, at the cost of undercounting a streak for a user who solves
more than 30 questions within the streak window.  The cap is a setting
so it can be raised without a code change.

If the user has not solved anything today the streak is still alive
from yesterday: solving yesterday and the two days before gives 3.
Nothing today AND nothing yesterday gives 0.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable

from algoarena.models.catalog import Level
from algoarena.models.progress import ProgressRecord
from algoarena.models.summaries import (
    LevelCounts,
    LevelPercentages,
    ProgressStats,
    percentage,
)
from algoarena.repos.catalog_repo import CatalogReader
from algoarena.repos.progress_repo import ProgressRepo

Clock = Callable[[], datetime.datetime]

_ONE_DAY = datetime.timedelta(days=1)
_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.UTC)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def _as_utc(ts: datetime.datetime) -> datetime.datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=datetime.UTC)
    return ts.astimezone(datetime.UTC)


def solving_streak(solved_days: set[datetime.date], today: datetime.date) -> int:
    day = today if today in solved_days else today - _ONE_DAY
    streak = 0
    while day in solved_days:
        streak += 1
        day -= _ONE_DAY
    return streak


def count_recent(
    records: Iterable[ProgressRecord], now: datetime.datetime, days: int
) -> int:
    cutoff = now - datetime.timedelta(days=days)
    return sum(
        1 for r in records if r.solved_at is not None and _as_utc(r.solved_at) > cutoff
    )


def most_recent_solved(
    records: Iterable[ProgressRecord], limit: int
) -> list[ProgressRecord]:
    solved = [r for r in records if r.solved and r.solved_at is not None]
    solved.sort(key=lambda r: _as_utc(r.solved_at or _EPOCH), reverse=True)
    return solved[:limit]


class ProgressStatsCalculator:
    def __init__(
        self,
        progress: ProgressRepo,
        catalog: CatalogReader,
        *,
        streak_lookback: int = 30,
        recent_window_days: int = 7,
        clock: Clock = utcnow,
    ) -> None:
        self._progress = progress
        self._catalog = catalog
        self._lookback = streak_lookback
        self._recent_days = recent_window_days
        self._clock = clock

    async def compute_stats(self, user_id: str) -> ProgressStats:
        """Stats from the store's count queries plus one bounded fetch."""
        total_solved = await self._progress.count_by_user_solved(user_id)
        solved_by_level = LevelCounts(
            **{
                level.key: await self._progress.count_by_user_solved_and_level(
                    user_id, level
                )
                for level in Level
            }
        )
        recent = await self._progress.find_recent_solved(user_id, self._lookback)
        return await self._assemble(total_solved, solved_by_level, recent)

    async def stats_from_records(self, records: Iterable[ProgressRecord]) -> ProgressStats:
        """Stats derived from an already-fetched record list.

        The solved counts come from exactly these records, so a caller that
        also renders them (the bulk snapshot) can never disagree with itself.
        """
        solved = [r for r in records if r.solved]
        return await self._assemble(
            len(solved),
            LevelCounts.tally(r.level for r in solved),
            most_recent_solved(solved, self._lookback),
        )

    async def _assemble(
        self,
        total_solved: int,
        solved_by_level: LevelCounts,
        recent: list[ProgressRecord],
    ) -> ProgressStats:
        total_questions = await self._catalog.total_question_count()
        total_by_level = LevelCounts(
            **{level.key: await self._catalog.count_by_level(level) for level in Level}
        )

        now = self._clock()
        solved_days = {_as_utc(r.solved_at).date() for r in recent if r.solved_at}

        return ProgressStats(
            total_solved=total_solved,
            total_questions=total_questions,
            progress_percentage=percentage(total_solved, total_questions),
            solved_by_level=solved_by_level,
            total_by_level=total_by_level,
            progress_by_level=LevelPercentages.of(solved_by_level, total_by_level),
            streak=solving_streak(solved_days, _as_utc(now).date()),
            recent_solved=count_recent(recent, now, self._recent_days),
        )
