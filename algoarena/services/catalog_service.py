"""Admin writes to the category/question catalog.

Every write commits and then drops the derived progress views for all
users via CacheInvalidationCoordinator.on_catalog_write.  Deletes cascade
explicitly (questions → their progress and approaches) so the in-memory
and PostgreSQL stores behave the same.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from algoarena.core.config import SETTINGS, Settings
from algoarena.core.errors import AlreadyExists, NotFound
from algoarena.models.catalog import Category, Level, Question
from algoarena.repos.stores import Stores
from algoarena.services.cache import CacheService
from algoarena.services.cache_aside import CacheAside
from algoarena.services.invalidation import CacheInvalidationCoordinator, CatalogScope

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(
        self, stores: Stores, cache: CacheService, *, settings: Settings = SETTINGS
    ) -> None:
        self._stores = stores
        self._catalog = stores.catalog
        self.invalidation = CacheInvalidationCoordinator(
            CacheAside(cache, timeout_seconds=settings.cache_timeout_seconds)
        )

    async def _committed(self, scope: CatalogScope) -> None:
        await self._stores.commit()
        await self.invalidation.on_catalog_write(scope)

    # --- categories ---

    async def create_category(self, name: str, created_by_id: str | None = None) -> Category:
        await self._ensure_unique_name(name)
        category = Category.new(name=name, created_by_id=created_by_id)
        await self._catalog.add_category(category)
        await self._committed(CatalogScope.CATEGORY)
        logger.info("Category created: id=%s name=%s", category.id, category.name)
        return category

    async def rename_category(self, category_id: str, name: str) -> Category:
        category = await self._require_category(category_id)
        await self._ensure_unique_name(name, ignore_id=category_id)
        renamed = replace(category, name=name.strip())
        await self._catalog.save_category(renamed)
        await self._committed(CatalogScope.CATEGORY)
        return renamed

    async def delete_category(self, category_id: str) -> int:
        """Delete a category and every question in it.  Returns the question count."""
        await self._require_category(category_id)
        questions = await self._catalog.questions_by_category(category_id)
        for question in questions:
            await self._delete_question_rows(question.id)
        await self._catalog.delete_category(category_id)
        await self._committed(CatalogScope.CATEGORY)
        logger.info(
            "Category deleted: id=%s questions_removed=%d", category_id, len(questions)
        )
        return len(questions)

    # --- questions ---

    async def create_question(
        self,
        *,
        title: str,
        category_id: str,
        level: Level,
        statement: str = "",
        created_by_id: str | None = None,
    ) -> Question:
        await self._require_category(category_id)
        question = Question.new(
            title=title,
            category_id=category_id,
            level=level,
            statement=statement,
            created_by_id=created_by_id,
        )
        await self._catalog.add_question(question)
        await self._committed(CatalogScope.QUESTION)
        logger.info("Question created: id=%s level=%s", question.id, question.level)
        return question

    async def update_question(
        self,
        question_id: str,
        *,
        title: str | None = None,
        category_id: str | None = None,
        level: Level | None = None,
        statement: str | None = None,
    ) -> Question:
        question = await self._require_question(question_id)
        if category_id is not None and category_id != question.category_id:
            await self._require_category(category_id)

        updated = replace(
            question,
            title=title.strip() if title is not None else question.title,
            category_id=category_id or question.category_id,
            level=level or question.level,
            statement=statement if statement is not None else question.statement,
        )
        await self._catalog.save_question(updated)
        if updated.level != question.level:
            # Progress records carry the level so stats can count without a join.
            await self._stores.progress.update_level_for_question(question_id, updated.level)
        await self._committed(CatalogScope.QUESTION)
        return updated

    async def delete_question(self, question_id: str) -> None:
        await self._require_question(question_id)
        await self._delete_question_rows(question_id)
        await self._committed(CatalogScope.QUESTION)
        logger.info("Question deleted: id=%s", question_id)

    # --- helpers ---

    async def _delete_question_rows(self, question_id: str) -> None:
        removed = await self._stores.progress.delete_by_question(question_id)
        await self._stores.approaches.delete_by_question(question_id)
        await self._catalog.delete_question(question_id)
        logger.debug("Question %s removed with %d progress records", question_id, removed)

    async def _require_category(self, category_id: str) -> Category:
        category = await self._catalog.get_category(category_id)
        if category is None:
            raise NotFound("category", category_id)
        return category

    async def _require_question(self, question_id: str) -> Question:
        question = await self._catalog.get_question(question_id)
        if question is None:
            raise NotFound("question", question_id)
        return question

    async def _ensure_unique_name(self, name: str, *, ignore_id: str | None = None) -> None:
        existing = await self._catalog.get_category_by_name(name)
        if existing is not None and existing.id != ignore_id:
            raise AlreadyExists("category", name.strip())
