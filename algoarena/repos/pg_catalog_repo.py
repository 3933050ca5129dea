"""PostgreSQL implementation of CatalogRepo."""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from algoarena.db.engine import store_errors
from algoarena.db.tables import CategoryRow, QuestionRow
from algoarena.models.catalog import Category, Level, Question
from algoarena.models.summaries import PageFilter


class PgCatalogRepo:
    """Satisfies the CatalogRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- reader ---

    async def all_categories(self) -> list[Category]:
        stmt = select(CategoryRow).order_by(func.lower(CategoryRow.name))
        with store_errors("catalog.all_categories"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_category(r) for r in rows]

    async def get_category(self, category_id: str) -> Category | None:
        with store_errors("catalog.get_category"):
            row = await self._session.get(CategoryRow, category_id)
        return _row_to_category(row) if row is not None else None

    async def get_category_by_name(self, name: str) -> Category | None:
        stmt = select(CategoryRow).where(
            func.lower(CategoryRow.name) == name.strip().lower()
        )
        with store_errors("catalog.get_category_by_name"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_category(row) if row is not None else None

    async def all_questions(self) -> list[Question]:
        stmt = select(QuestionRow).order_by(
            QuestionRow.created_at.desc(), QuestionRow.id.desc()
        )
        with store_errors("catalog.all_questions"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_question(r) for r in rows]

    async def get_question(self, question_id: str) -> Question | None:
        with store_errors("catalog.get_question"):
            row = await self._session.get(QuestionRow, question_id)
        return _row_to_question(row) if row is not None else None

    async def questions_by_ids(self, question_ids: Collection[str]) -> list[Question]:
        if not question_ids:
            return []
        stmt = select(QuestionRow).where(QuestionRow.id.in_(list(question_ids)))
        with store_errors("catalog.questions_by_ids"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_question(r) for r in rows]

    async def questions_by_category(self, category_id: str) -> list[Question]:
        stmt = (
            select(QuestionRow)
            .where(QuestionRow.category_id == category_id)
            .order_by(QuestionRow.created_at.desc(), QuestionRow.id.desc())
        )
        with store_errors("catalog.questions_by_category"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_question(r) for r in rows]

    async def find_questions(self, page_filter: PageFilter) -> tuple[list[Question], int]:
        base = _apply_filter(select(QuestionRow), page_filter)
        count_stmt = select(func.count()).select_from(base.subquery())
        page_stmt = (
            base.order_by(QuestionRow.created_at.desc(), QuestionRow.id.desc())
            .offset(page_filter.page * page_filter.size)
            .limit(page_filter.size)
        )
        with store_errors("catalog.find_questions"):
            total = (await self._session.execute(count_stmt)).scalar_one()
            rows = (await self._session.scalars(page_stmt)).all()
        return [_row_to_question(r) for r in rows], total

    async def count_by_level(self, level: Level) -> int:
        stmt = select(func.count()).where(QuestionRow.level == level)
        with store_errors("catalog.count_by_level"):
            return (await self._session.execute(stmt)).scalar_one()

    async def total_question_count(self) -> int:
        stmt = select(func.count()).select_from(QuestionRow)
        with store_errors("catalog.total_question_count"):
            return (await self._session.execute(stmt)).scalar_one()

    # --- writer ---

    async def add_category(self, category: Category) -> None:
        self._session.add(
            CategoryRow(
                id=category.id,
                name=category.name,
                created_by_id=category.created_by_id,
                created_at=category.created_at,
            )
        )
        with store_errors("catalog.add_category"):
            await self._session.flush()

    async def save_category(self, category: Category) -> None:
        stmt = (
            update(CategoryRow)
            .where(CategoryRow.id == category.id)
            .values(name=category.name)
        )
        with store_errors("catalog.save_category"):
            await self._session.execute(stmt)

    async def delete_category(self, category_id: str) -> None:
        stmt = delete(CategoryRow).where(CategoryRow.id == category_id)
        with store_errors("catalog.delete_category"):
            await self._session.execute(stmt)

    async def add_question(self, question: Question) -> None:
        self._session.add(
            QuestionRow(
                id=question.id,
                title=question.title,
                statement=question.statement,
                category_id=question.category_id,
                level=question.level,
                created_by_id=question.created_by_id,
                created_at=question.created_at,
            )
        )
        with store_errors("catalog.add_question"):
            await self._session.flush()

    async def save_question(self, question: Question) -> None:
        stmt = (
            update(QuestionRow)
            .where(QuestionRow.id == question.id)
            .values(
                title=question.title,
                statement=question.statement,
                category_id=question.category_id,
                level=question.level,
            )
        )
        with store_errors("catalog.save_question"):
            await self._session.execute(stmt)

    async def delete_question(self, question_id: str) -> None:
        stmt = delete(QuestionRow).where(QuestionRow.id == question_id)
        with store_errors("catalog.delete_question"):
            await self._session.execute(stmt)


def _apply_filter(stmt: Select, page_filter: PageFilter) -> Select:
    # Same precedence as the in-memory repo: search, then category/level.
    # autoescape: % and _ typed by a user are literal characters.
    search = page_filter.normalized_search
    if search is not None:
        return stmt.where(
            or_(
                QuestionRow.title.icontains(search, autoescape=True),
                QuestionRow.statement.icontains(search, autoescape=True),
            )
        )
    if page_filter.category_id:
        stmt = stmt.where(QuestionRow.category_id == page_filter.category_id)
    if page_filter.level is not None:
        stmt = stmt.where(QuestionRow.level == page_filter.level)
    return stmt


def _row_to_category(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        created_by_id=row.created_by_id,
        created_at=row.created_at,
    )


def _row_to_question(row: QuestionRow) -> Question:
    return Question(
        id=row.id,
        title=row.title,
        category_id=row.category_id,
        level=row.level,
        statement=row.statement or "",
        created_by_id=row.created_by_id,
        created_at=row.created_at,
    )
