from __future__ import annotations

from collections.abc import Collection
from typing import Protocol

from algoarena.models.catalog import Category, Level, Question
from algoarena.models.summaries import PageFilter


class CatalogReader(Protocol):
    async def all_categories(self) -> list[Category]: ...
    async def get_category(self, category_id: str) -> Category | None: ...
    async def get_category_by_name(self, name: str) -> Category | None: ...
    async def all_questions(self) -> list[Question]: ...
    async def get_question(self, question_id: str) -> Question | None: ...
    async def questions_by_ids(self, question_ids: Collection[str]) -> list[Question]: ...
    async def questions_by_category(self, category_id: str) -> list[Question]: ...
    async def find_questions(self, page_filter: PageFilter) -> tuple[list[Question], int]: ...
    async def count_by_level(self, level: Level) -> int: ...
    async def total_question_count(self) -> int: ...


class CatalogWriter(Protocol):
    async def add_category(self, category: Category) -> None: ...
    async def save_category(self, category: Category) -> None: ...
    async def delete_category(self, category_id: str) -> None: ...
    async def add_question(self, question: Question) -> None: ...
    async def save_question(self, question: Question) -> None: ...
    async def delete_question(self, question_id: str) -> None: ...


class CatalogRepo(CatalogReader, CatalogWriter, Protocol):
    """Read and write access to categories and questions."""


def _newest_first(questions: list[Question]) -> list[Question]:
    return sorted(questions, key=lambda q: (q.created_at, q.id), reverse=True)


def matches_filter(question: Question, page_filter: PageFilter) -> bool:
    """Filter precedence: search wins, then category (+ level), then level."""
    search = page_filter.normalized_search
    if search is not None:
        needle = search.lower()
        return needle in question.title.lower() or needle in question.statement.lower()
    if page_filter.category_id and question.category_id != page_filter.category_id:
        return False
    if page_filter.level is not None and question.level != page_filter.level:
        return False
    return True


class InMemoryCatalogRepo:
    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}
        self._questions: dict[str, Question] = {}

    # --- reader ---

    async def all_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    async def get_category(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    async def get_category_by_name(self, name: str) -> Category | None:
        wanted = name.strip().lower()
        for category in self._categories.values():
            if category.name.lower() == wanted:
                return category
        return None

    async def all_questions(self) -> list[Question]:
        return _newest_first(list(self._questions.values()))

    async def get_question(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    async def questions_by_ids(self, question_ids: Collection[str]) -> list[Question]:
        return [self._questions[q] for q in question_ids if q in self._questions]

    async def questions_by_category(self, category_id: str) -> list[Question]:
        return _newest_first(
            [q for q in self._questions.values() if q.category_id == category_id]
        )

    async def find_questions(self, page_filter: PageFilter) -> tuple[list[Question], int]:
        matching = _newest_first(
            [q for q in self._questions.values() if matches_filter(q, page_filter)]
        )
        start = page_filter.page * page_filter.size
        return matching[start : start + page_filter.size], len(matching)

    async def count_by_level(self, level: Level) -> int:
        return sum(1 for q in self._questions.values() if q.level == level)

    async def total_question_count(self) -> int:
        return len(self._questions)

    # --- writer ---

    async def add_category(self, category: Category) -> None:
        if category.id in self._categories:
            raise ValueError("category id already exists")
        self._categories[category.id] = category

    async def save_category(self, category: Category) -> None:
        self._categories[category.id] = category

    async def delete_category(self, category_id: str) -> None:
        self._categories.pop(category_id, None)

    async def add_question(self, question: Question) -> None:
        if question.id in self._questions:
            raise ValueError("question id already exists")
        self._questions[question.id] = question

    async def save_question(self, question: Question) -> None:
        self._questions[question.id] = question

    async def delete_question(self, question_id: str) -> None:
        self._questions.pop(question_id, None)
