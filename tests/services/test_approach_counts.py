"""Bulk approach counts: grouped query and per-question fallback."""

from __future__ import annotations

import asyncio

from prometheus_client import REGISTRY

from algoarena.models.progress import ApproachRecord
from algoarena.repos.approach_repo import InMemoryApproachRepo
from algoarena.services.approach_counts import BulkCountAggregator


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def _seed(repo: InMemoryApproachRepo) -> None:
    for question_id, n in (("q1", 3), ("q2", 1)):
        for _ in range(n):
            asyncio.run(repo.add(ApproachRecord.new(user_id="u1", question_id=question_id)))
    asyncio.run(repo.add(ApproachRecord.new(user_id="u2", question_id="q1")))


class _FlakyCounts(InMemoryApproachRepo):
    """Grouped query broken; per-question counts fail for one id."""

    def __init__(self, failing_id: str) -> None:
        super().__init__(supports_grouping=False)
        self._failing_id = failing_id

    async def count_by_user_and_question(self, user_id: str, question_id: str) -> int:
        if question_id == self._failing_id:
            raise ConnectionError("store went away")
        return await super().count_by_user_and_question(user_id, question_id)


class _ExplodingGrouped(InMemoryApproachRepo):
    async def grouped_count_by_user_and_questions(self, user_id, question_ids):
        raise RuntimeError("syntax error near GROUP BY")


def test_every_requested_id_present_with_zero_default() -> None:
    repo = InMemoryApproachRepo()
    _seed(repo)

    counts = asyncio.run(
        BulkCountAggregator(repo).get_bulk_approach_counts("u1", ["q1", "q2", "q3"])
    )

    assert counts == {"q1": 3, "q2": 1, "q3": 0}


def test_empty_input_gives_empty_map() -> None:
    aggregator = BulkCountAggregator(InMemoryApproachRepo())
    assert asyncio.run(aggregator.get_bulk_approach_counts("u1", [])) == {}


def test_duplicate_ids_collapse() -> None:
    repo = InMemoryApproachRepo()
    _seed(repo)
    counts = asyncio.run(
        BulkCountAggregator(repo).get_bulk_approach_counts("u1", ["q1", "q1", "q2"])
    )
    assert counts == {"q1": 3, "q2": 1}


def test_fallback_agrees_with_grouped_path() -> None:
    grouped_repo = InMemoryApproachRepo()
    fallback_repo = InMemoryApproachRepo(supports_grouping=False)
    _seed(grouped_repo)
    _seed(fallback_repo)
    ids = ["q1", "q2", "q3", "q4"]

    grouped = asyncio.run(BulkCountAggregator(grouped_repo).get_bulk_approach_counts("u1", ids))
    fallback = asyncio.run(
        BulkCountAggregator(fallback_repo).get_bulk_approach_counts("u1", ids)
    )

    assert grouped == fallback
    assert len(fallback) == len(ids)


def test_unexpected_grouped_error_takes_fallback() -> None:
    repo = _ExplodingGrouped()
    _seed(repo)
    before = _get_sample("approach_count_queries_total", {"path": "fallback"})

    counts = asyncio.run(BulkCountAggregator(repo).get_bulk_approach_counts("u1", ["q1", "q2"]))

    after = _get_sample("approach_count_queries_total", {"path": "fallback"})
    assert counts == {"q1": 3, "q2": 1}
    assert after - before == 1


def test_failing_id_reported_as_zero() -> None:
    repo = _FlakyCounts(failing_id="q2")
    _seed(repo)

    counts = asyncio.run(BulkCountAggregator(repo).get_bulk_approach_counts("u1", ["q1", "q2"]))

    assert counts == {"q1": 3, "q2": 0}


def test_grouped_path_counted() -> None:
    repo = InMemoryApproachRepo()
    before = _get_sample("approach_count_queries_total", {"path": "grouped"})
    asyncio.run(BulkCountAggregator(repo).get_bulk_approach_counts("u1", ["q1"]))
    after = _get_sample("approach_count_queries_total", {"path": "grouped"})
    assert after - before == 1
