"""PostgreSQL implementation of ApproachRepo."""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from algoarena.core.errors import AggregationUnavailable
from algoarena.db.engine import store_errors
from algoarena.db.tables import ApproachRow
from algoarena.models.progress import ApproachRecord


class PgApproachRepo:
    """Satisfies the ApproachRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def grouped_count_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[tuple[str, int]]:
        if not question_ids:
            return []
        stmt = (
            select(ApproachRow.question_id, func.count())
            .where(
                ApproachRow.user_id == user_id,
                ApproachRow.question_id.in_(list(question_ids)),
            )
            .group_by(ApproachRow.question_id)
        )
        # SAVEPOINT: a failed statement must not abort the request's
        # transaction, or the per-question fallback would fail with it.
        try:
            async with self._session.begin_nested():
                rows = (await self._session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise AggregationUnavailable("grouped approach count failed") from exc
        return [(question_id, count) for question_id, count in rows]

    async def count_by_user_and_question(self, user_id: str, question_id: str) -> int:
        stmt = select(func.count()).where(
            ApproachRow.user_id == user_id,
            ApproachRow.question_id == question_id,
        )
        # Own SAVEPOINT per id: one failed count must not abort the
        # transaction for the ids after it.
        with store_errors("approaches.count_by_user_and_question"):
            async with self._session.begin_nested():
                return (await self._session.execute(stmt)).scalar_one()

    async def add(self, approach: ApproachRecord) -> None:
        row = ApproachRow(
            id=approach.id,
            user_id=approach.user_id,
            question_id=approach.question_id,
            content_size=approach.content_size,
        )
        self._session.add(row)
        with store_errors("approaches.add"):
            await self._session.flush()

    async def delete_by_question(self, question_id: str) -> int:
        stmt = delete(ApproachRow).where(ApproachRow.question_id == question_id)
        with store_errors("approaches.delete_by_question"):
            result = await self._session.execute(stmt)
        return result.rowcount or 0
