from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from algoarena.db.engine import async_session_factory
from algoarena.models.principal import Principal
from algoarena.repos.stores import Stores
from algoarena.services.cache import cache_service
from algoarena.services.catalog_service import CatalogService
from algoarena.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

# Process-wide in-memory stores, used when DATABASE_URL is not set.
memory_stores = Stores.in_memory()


def require_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_roles: Annotated[str | None, Header()] = None,
) -> Principal:
    """Caller identity, as forwarded by the gateway.

    The gateway authenticates the request and passes the subject in
    X-User-Id and its roles (comma separated) in X-User-Roles.  A request
    without X-User-Id never went through it and is rejected.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        logger.warning("Request without X-User-Id rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    roles = frozenset(r.strip().lower() for r in (x_user_roles or "").split(",") if r.strip())
    return Principal(user_id=user_id, roles=roles)


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    Returns the Principal if the role is present, else 403.
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s",
                principal.user_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


async def get_stores() -> AsyncGenerator[Stores, None]:
    """Request-scoped Stores.

    With a database every request gets its own AsyncSession; services
    commit explicitly before invalidating caches, so this only has to
    roll back on failure.
    """
    if async_session_factory is None:
        yield memory_stores
        return
    async with async_session_factory() as session:
        try:
            yield Stores.postgres(session)
        except Exception:
            await session.rollback()
            raise


def get_progress_service(
    stores: Annotated[Stores, Depends(get_stores)],
) -> ProgressService:
    return ProgressService(stores, cache_service)


def get_catalog_service(
    stores: Annotated[Stores, Depends(get_stores)],
) -> CatalogService:
    return CatalogService(stores, cache_service)
