from __future__ import annotations

import asyncio
import datetime

import pytest
from prometheus_client import REGISTRY

from algoarena.core.errors import NotFound
from algoarena.models.catalog import Level
from algoarena.models.summaries import PageFilter
from algoarena.repos.stores import Stores
from algoarena.services import cache_keys
from algoarena.services.cache import InMemoryCacheService
from algoarena.services.progress_service import ProgressService
from tests.conftest import NOW, add_category, add_questions, add_user


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


class _Clock:
    def __init__(self, now: datetime.datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def service(stores: Stores, cache: InMemoryCacheService, clock: _Clock) -> ProgressService:
    return ProgressService(stores, cache, clock=clock)


@pytest.fixture
def questions(stores: Stores):
    add_user(stores, "u1")
    add_user(stores, "u2")
    arrays = add_category(stores, "Arrays")
    return add_questions(stores, arrays, Level.EASY, 2) + add_questions(
        stores, arrays, Level.HARD, 1
    )


# ---- update_progress ----


def test_solve_sets_solved_at(service: ProgressService, questions) -> None:
    record = asyncio.run(service.update_progress("u1", questions[0].id, True))
    assert record.solved is True
    assert record.solved_at == NOW
    assert record.level == Level.EASY


def test_resolving_keeps_original_solved_at(
    service: ProgressService, questions, clock: _Clock
) -> None:
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    clock.now = NOW + datetime.timedelta(days=2)

    again = asyncio.run(service.update_progress("u1", questions[0].id, True))

    assert again.solved_at == NOW


def test_unsolve_clears_solved_at(service: ProgressService, questions) -> None:
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    record = asyncio.run(service.update_progress("u1", questions[0].id, False))
    assert record.solved is False
    assert record.solved_at is None


def test_level_copied_from_question(service: ProgressService, questions) -> None:
    record = asyncio.run(service.update_progress("u1", questions[2].id, True))
    assert record.level == Level.HARD


def test_unknown_question_or_user(service: ProgressService, questions) -> None:
    with pytest.raises(NotFound, match="question"):
        asyncio.run(service.update_progress("u1", "nope", True))
    with pytest.raises(NotFound, match="user"):
        asyncio.run(service.update_progress("ghost", questions[0].id, True))


def test_update_counted(service: ProgressService, questions) -> None:
    before = _get_sample("progress_updates_total", {"solved": "true"})
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    assert _get_sample("progress_updates_total", {"solved": "true"}) - before == 1


# ---- invalidation after write ----


def test_reads_reflect_write_immediately(service: ProgressService, questions) -> None:
    qid = questions[0].id

    async def _flow():
        before = (
            await service.get_bulk_progress("u1"),
            await service.get_stats("u1"),
            await service.is_question_solved("u1", qid),
            await service.get_categories_with_progress("u1"),
            await service.get_questions_with_progress("u1", PageFilter()),
            await service.get_global_stats(),
        )
        await service.update_progress("u1", qid, True)
        after = (
            await service.get_bulk_progress("u1"),
            await service.get_stats("u1"),
            await service.is_question_solved("u1", qid),
            await service.get_categories_with_progress("u1"),
            await service.get_questions_with_progress("u1", PageFilter()),
            await service.get_global_stats(),
        )
        return before, after

    before, after = asyncio.run(_flow())
    bulk, stats, solved, categories, page, global_stats = after

    assert before[0].stats.total_solved == 0
    assert before[2] is False
    assert bulk.progress_map[qid].solved is True
    assert stats.total_solved == 1
    assert solved is True
    assert categories[0].user_progress.solved == 1
    assert {i.id: i.user_progress.solved for i in page.items}[qid] is True
    assert global_stats.total_solved_globally == 1


def test_write_leaves_other_users_cache(
    service: ProgressService, cache: InMemoryCacheService, questions
) -> None:
    asyncio.run(service.get_stats("u2"))
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    assert cache_keys.stats("u2") in cache._store


# ---- other reads ----


def test_bulk_progress_status(service: ProgressService, questions) -> None:
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    asyncio.run(service.update_progress("u1", questions[1].id, False))

    status = asyncio.run(
        service.get_bulk_progress_status("u1", [questions[0].id, questions[1].id, "other"])
    )

    assert status == {questions[0].id: True, questions[1].id: False, "other": False}
    assert asyncio.run(service.get_bulk_progress_status("u1", [])) == {}


def test_recent_solved_newest_first(
    service: ProgressService, questions, clock: _Clock
) -> None:
    for offset, question in enumerate(questions):
        clock.now = NOW + datetime.timedelta(hours=offset)
        asyncio.run(service.update_progress("u1", question.id, True))

    recent = asyncio.run(service.get_recent_solved_questions("u1", limit=2))

    assert [r.question_id for r in recent] == [questions[2].id, questions[1].id]
    assert recent[0].category_name == "Arrays"
    assert recent[0].level == Level.HARD


def test_global_stats(service: ProgressService, questions) -> None:
    asyncio.run(service.update_progress("u1", questions[0].id, True))
    asyncio.run(service.update_progress("u1", questions[1].id, True))
    asyncio.run(service.update_progress("u2", questions[0].id, True))

    stats = asyncio.run(service.get_global_stats())

    assert stats.total_solved_globally == 3
    assert stats.active_users == 2
    assert stats.average_questions_per_user == 1.5


def test_global_stats_empty(service: ProgressService) -> None:
    stats = asyncio.run(service.get_global_stats())
    assert stats.active_users == 0
    assert stats.average_questions_per_user == 0.0
