"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import case, delete, func, null, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from algoarena.db.engine import store_errors
from algoarena.db.tables import UserProgressRow
from algoarena.models.catalog import Level
from algoarena.models.progress import ProgressRecord


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_user(self, user_id: str) -> list[ProgressRecord]:
        stmt = select(UserProgressRow).where(UserProgressRow.user_id == user_id)
        with store_errors("progress.find_by_user"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_record(r) for r in rows]

    async def find_by_user_and_question(
        self, user_id: str, question_id: str
    ) -> ProgressRecord | None:
        stmt = select(UserProgressRow).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.question_id == question_id,
        )
        with store_errors("progress.find_by_user_and_question"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_record(row) if row is not None else None

    async def find_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[ProgressRecord]:
        if not question_ids:
            return []
        stmt = select(UserProgressRow).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.question_id.in_(list(question_ids)),
        )
        with store_errors("progress.find_by_user_and_questions"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_record(r) for r in rows]

    async def find_by_user_solved(self, user_id: str) -> list[ProgressRecord]:
        stmt = select(UserProgressRow).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.solved.is_(True),
        )
        with store_errors("progress.find_by_user_solved"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_record(r) for r in rows]

    async def find_recent_solved(self, user_id: str, limit: int) -> list[ProgressRecord]:
        stmt = (
            select(UserProgressRow)
            .where(
                UserProgressRow.user_id == user_id,
                UserProgressRow.solved.is_(True),
            )
            .order_by(UserProgressRow.solved_at.desc())
            .limit(limit)
        )
        with store_errors("progress.find_recent_solved"):
            rows = (await self._session.scalars(stmt)).all()
        return [_row_to_record(r) for r in rows]

    async def count_by_user_solved(self, user_id: str) -> int:
        stmt = select(func.count()).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.solved.is_(True),
        )
        with store_errors("progress.count_by_user_solved"):
            return (await self._session.execute(stmt)).scalar_one()

    async def count_by_user_solved_and_level(self, user_id: str, level: Level) -> int:
        stmt = select(func.count()).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.solved.is_(True),
            UserProgressRow.level == level,
        )
        with store_errors("progress.count_by_user_solved_and_level"):
            return (await self._session.execute(stmt)).scalar_one()

    async def count_total_solved(self) -> int:
        stmt = select(func.count()).where(UserProgressRow.solved.is_(True))
        with store_errors("progress.count_total_solved"):
            return (await self._session.execute(stmt)).scalar_one()

    async def count_distinct_solvers(self) -> int:
        stmt = select(func.count(func.distinct(UserProgressRow.user_id))).where(
            UserProgressRow.solved.is_(True)
        )
        with store_errors("progress.count_distinct_solvers"):
            return (await self._session.execute(stmt)).scalar_one()

    async def upsert(self, record: ProgressRecord) -> ProgressRecord:
        stmt = upsert_statement(record)
        with store_errors("progress.upsert"):
            row = (
                await self._session.scalars(
                    stmt, execution_options={"populate_existing": True}
                )
            ).one()
        return _row_to_record(row)

    async def update_level_for_question(self, question_id: str, level: Level) -> None:
        stmt = (
            update(UserProgressRow)
            .where(UserProgressRow.question_id == question_id)
            .values(level=level)
        )
        with store_errors("progress.update_level_for_question"):
            await self._session.execute(stmt)

    async def delete_by_question(self, question_id: str) -> int:
        stmt = delete(UserProgressRow).where(UserProgressRow.question_id == question_id)
        with store_errors("progress.delete_by_question"):
            result = await self._session.execute(stmt)
        return result.rowcount or 0


def _row_to_record(row: UserProgressRow) -> ProgressRecord:
    return ProgressRecord(
        user_id=row.user_id,
        question_id=row.question_id,
        solved=row.solved,
        level=row.level,
        solved_at=row.solved_at if row.solved else None,
    )


def upsert_statement(record: ProgressRecord):
    """INSERT ... ON CONFLICT DO UPDATE for one (user, question) pair.

    One statement, so two racing writers for the same pair serialize on
    the unique constraint.  COALESCE keeps the first solved_at of an
    already-solved record; an unsolve always clears it.
    """
    stmt = pg_insert(UserProgressRow).values(
        user_id=record.user_id,
        question_id=record.question_id,
        solved=record.solved,
        level=record.level,
        solved_at=record.solved_at,
    )
    return stmt.on_conflict_do_update(
        constraint="uq_user_progress_user_question",
        set_={
            "solved": stmt.excluded.solved,
            "level": stmt.excluded.level,
            "solved_at": case(
                (
                    stmt.excluded.solved.is_(True),
                    func.coalesce(UserProgressRow.solved_at, stmt.excluded.solved_at),
                ),
                else_=null(),
            ),
        },
    ).returning(UserProgressRow)
