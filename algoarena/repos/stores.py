"""The four stores the progress subsystem reads and writes, as one bundle.

Services take a Stores instead of four separate repos so a request gets
one consistent set: either all in-memory, or all bound to the same
AsyncSession (and therefore the same transaction).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from algoarena.db.engine import store_errors
from algoarena.repos.approach_repo import ApproachRepo, InMemoryApproachRepo
from algoarena.repos.catalog_repo import CatalogRepo, InMemoryCatalogRepo
from algoarena.repos.pg_approach_repo import PgApproachRepo
from algoarena.repos.pg_catalog_repo import PgCatalogRepo
from algoarena.repos.pg_progress_repo import PgProgressRepo
from algoarena.repos.pg_user_repo import PgUserRepo
from algoarena.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from algoarena.repos.user_repo import InMemoryUserRepo, UserRepo


async def _no_commit() -> None:
    return None


@dataclass(frozen=True)
class Stores:
    progress: ProgressRepo
    approaches: ApproachRepo
    catalog: CatalogRepo
    users: UserRepo
    # Makes pending writes durable.  Write paths call it BEFORE evicting
    # cache entries, so a recompute can never read pre-write data after
    # the eviction.
    commit: Callable[[], Awaitable[None]] = _no_commit

    @staticmethod
    def in_memory() -> Stores:
        return Stores(
            progress=InMemoryProgressRepo(),
            approaches=InMemoryApproachRepo(),
            catalog=InMemoryCatalogRepo(),
            users=InMemoryUserRepo(),
        )

    @staticmethod
    def postgres(session: AsyncSession) -> Stores:
        async def _commit() -> None:
            with store_errors("commit"):
                await session.commit()

        return Stores(
            progress=PgProgressRepo(session),
            approaches=PgApproachRepo(session),
            catalog=PgCatalogRepo(session),
            users=PgUserRepo(session),
            commit=_commit,
        )
