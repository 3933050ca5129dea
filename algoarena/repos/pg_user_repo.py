"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from algoarena.db.engine import store_errors
from algoarena.db.tables import UserRow
from algoarena.models.user import User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        with store_errors("users.get_by_id"):
            row = await self._session.get(UserRow, user_id)
        if row is None:
            return None
        return User(id=row.id, email=row.email, name=row.name or "")

    async def add(self, user: User) -> None:
        self._session.add(UserRow(id=user.id, email=user.email, name=user.name))
        with store_errors("users.add"):
            await self._session.flush()
