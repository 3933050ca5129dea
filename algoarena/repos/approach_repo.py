from __future__ import annotations

from collections import Counter
from collections.abc import Collection
from typing import Protocol

from algoarena.core.errors import AggregationUnavailable
from algoarena.models.progress import ApproachRecord


class ApproachRepo(Protocol):
    async def grouped_count_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[tuple[str, int]]: ...
    async def count_by_user_and_question(self, user_id: str, question_id: str) -> int: ...
    async def add(self, approach: ApproachRecord) -> None: ...
    async def delete_by_question(self, question_id: str) -> int: ...


class InMemoryApproachRepo:
    """Dict-backed approach store.

    supports_grouping=False makes the grouped query fail the way a store
    without aggregation support would, so the per-question fallback can be
    exercised without a database.
    """

    def __init__(self, *, supports_grouping: bool = True) -> None:
        self._store: dict[str, ApproachRecord] = {}
        self.supports_grouping = supports_grouping

    async def grouped_count_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[tuple[str, int]]:
        if not self.supports_grouping:
            raise AggregationUnavailable("grouped counts are disabled on this store")
        wanted = set(question_ids)
        counts = Counter(
            a.question_id
            for a in self._store.values()
            if a.user_id == user_id and a.question_id in wanted
        )
        return list(counts.items())

    async def count_by_user_and_question(self, user_id: str, question_id: str) -> int:
        return sum(
            1
            for a in self._store.values()
            if a.user_id == user_id and a.question_id == question_id
        )

    async def add(self, approach: ApproachRecord) -> None:
        if approach.id in self._store:
            raise ValueError("approach id already exists")
        self._store[approach.id] = approach

    async def delete_by_question(self, question_id: str) -> int:
        doomed = [k for k, a in self._store.items() if a.question_id == question_id]
        for key in doomed:
            del self._store[key]
        return len(doomed)
