"""Approach counts for a page of questions without one query per row.

A question list shows, for each of ~20 questions, how many approaches the
current user has submitted.  Counting per row is the classic N+1 pattern;
instead the store runs ONE grouped query:

    SELECT question_id, count(*) FROM approaches
    WHERE user_id = :u AND question_id IN (:ids)
    GROUP BY question_id

Questions with no approaches are absent from that result, so every
requested id starts at 0 and the grouped counts are laid over the top.

When the grouped query is unavailable the aggregator degrades to one
count per question.  Slower, same answer, and the list view keeps
working.  This method never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from algoarena.core.errors import AggregationUnavailable
from algoarena.core.metrics import APPROACH_COUNT_QUERIES
from algoarena.repos.approach_repo import ApproachRepo

logger = logging.getLogger(__name__)


class BulkCountAggregator:
    def __init__(self, approaches: ApproachRepo) -> None:
        self._approaches = approaches

    async def get_bulk_approach_counts(
        self, user_id: str, question_ids: Collection[str]
    ) -> dict[str, int]:
        wanted = list(dict.fromkeys(question_ids))  # de-dupe, keep order
        if not wanted:
            return {}

        try:
            counts = await self._grouped(user_id, wanted)
        except AggregationUnavailable as exc:
            logger.warning(
                "Grouped approach count failed, falling back to per-question counts: %s",
                exc,
                extra={"user_id": user_id, "question_count": len(wanted)},
            )
            APPROACH_COUNT_QUERIES.labels(path="fallback").inc()
            return await self._per_question(user_id, wanted)

        APPROACH_COUNT_QUERIES.labels(path="grouped").inc()
        return counts

    async def _grouped(self, user_id: str, question_ids: list[str]) -> dict[str, int]:
        counts = dict.fromkeys(question_ids, 0)
        try:
            rows = await self._approaches.grouped_count_by_user_and_questions(
                user_id, question_ids
            )
        except AggregationUnavailable:
            raise
        except Exception as exc:
            # Store errors, unsupported operations, malformed ids: all mean
            # "no grouped answer", and all take the same fallback.
            raise AggregationUnavailable(str(exc) or exc.__class__.__name__) from exc

        for question_id, count in rows:
            if question_id in counts:
                counts[question_id] = int(count)
        return counts

    async def _per_question(self, user_id: str, question_ids: list[str]) -> dict[str, int]:
        counts: dict[str, int] = {}
        for question_id in question_ids:
            try:
                counts[question_id] = await self._approaches.count_by_user_and_question(
                    user_id, question_id
                )
            except Exception:
                logger.warning(
                    "Approach count failed for question=%s, reporting 0",
                    question_id,
                    exc_info=True,
                    extra={"user_id": user_id},
                )
                counts[question_id] = 0
        return counts
