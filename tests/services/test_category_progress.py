from __future__ import annotations

import asyncio

import pytest

from algoarena.core.errors import NotFound
from algoarena.models.catalog import Level
from algoarena.models.progress import ProgressRecord
from algoarena.repos.stores import Stores
from algoarena.services.cache import InMemoryCacheService
from algoarena.services.cache_aside import CacheAside
from algoarena.services.category_progress import CategoryProgressCalculator
from tests.conftest import NOW, CountingRepo, add_category, add_questions


def _solve(stores: Stores, user_id: str, question) -> None:
    asyncio.run(
        stores.progress.upsert(
            ProgressRecord(user_id, question.id, True, question.level, NOW)
        )
    )


def _calculator(stores: Stores, progress=None) -> CategoryProgressCalculator:
    return CategoryProgressCalculator(
        stores.catalog,
        progress or stores.progress,
        CacheAside(InMemoryCacheService(), timeout_seconds=1.0),
        ttl_seconds=60,
    )


def test_category_example(stores: Stores) -> None:
    """10 questions (5/3/2); 4 easy + 1 medium solved → 5 solved, 50.0%."""
    dp = add_category(stores, "Dynamic Programming")
    easy = add_questions(stores, dp, Level.EASY, 5)
    medium = add_questions(stores, dp, Level.MEDIUM, 3)
    add_questions(stores, dp, Level.HARD, 2)
    for q in easy[:4] + medium[:1]:
        _solve(stores, "u1", q)

    [summary] = asyncio.run(_calculator(stores).get_categories_with_progress("u1"))

    assert summary.question_totals.total == 10
    assert summary.question_totals.by_level.model_dump() == {"easy": 5, "medium": 3, "hard": 2}
    assert summary.user_progress.solved == 5
    assert summary.user_progress.solved_by_level.model_dump() == {
        "easy": 4,
        "medium": 1,
        "hard": 0,
    }
    assert summary.user_progress.progress_percentage == 50.0


def test_categories_ordered_by_name_and_empty_category_is_zero(stores: Stores) -> None:
    trees = add_category(stores, "Trees")
    add_category(stores, "arrays")
    add_category(stores, "Graphs")
    add_questions(stores, trees, Level.EASY, 1)

    summaries = asyncio.run(_calculator(stores).get_categories_with_progress("u1"))

    assert [s.name for s in summaries] == ["arrays", "Graphs", "Trees"]
    assert summaries[0].question_totals.total == 0
    assert summaries[0].user_progress.progress_percentage == 0.0


def test_one_progress_fetch_regardless_of_category_count(stores: Stores) -> None:
    for name in ("A", "B", "C", "D"):
        category = add_category(stores, name)
        add_questions(stores, category, Level.EASY, 2)

    counting = CountingRepo(stores.progress)
    asyncio.run(_calculator(stores, counting).get_categories_with_progress("u1"))

    assert counting.calls == {"find_by_user_solved": 1}


def test_other_users_progress_not_counted(stores: Stores) -> None:
    arrays = add_category(stores, "Arrays")
    [q] = add_questions(stores, arrays, Level.HARD, 1)
    _solve(stores, "someone-else", q)

    [summary] = asyncio.run(_calculator(stores).get_categories_with_progress("u1"))
    assert summary.user_progress.solved == 0


def test_single_category_progress(stores: Stores) -> None:
    arrays = add_category(stores, "Arrays")
    trees = add_category(stores, "Trees")
    [a] = add_questions(stores, arrays, Level.EASY, 1)
    [t] = add_questions(stores, trees, Level.MEDIUM, 1)
    _solve(stores, "u1", a)
    _solve(stores, "u1", t)

    summary = asyncio.run(_calculator(stores).get_category_progress("u1", trees.id))

    assert summary.name == "Trees"
    assert summary.user_progress.solved == 1
    assert summary.user_progress.solved_by_level.medium == 1
    assert summary.user_progress.progress_percentage == 100.0


def test_single_category_unknown_raises(stores: Stores) -> None:
    with pytest.raises(NotFound):
        asyncio.run(_calculator(stores).get_category_progress("u1", "missing"))


def test_categories_sorted_by_name_ignoring_case(stores: Stores) -> None:
    for name in ("Trees", "arrays", "Graphs"):
        add_category(stores, name)

    summaries = asyncio.run(_calculator(stores).get_categories_with_progress("u1"))

    assert [s.name for s in summaries] == ["arrays", "Graphs", "Trees"]
