"""Async SQLAlchemy engine and session factory.

When DATABASE_URL is configured, provides:
- async engine for PostgreSQL via asyncpg
- async session factory; one session per request (see api/dependencies.py)
- FastAPI lifespan hook for startup/shutdown

When DATABASE_URL is None, the engine exports are None and the service
runs on the in-memory repositories.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from algoarena.core.config import SETTINGS
from algoarena.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


# --- Engine and session factory (None when no DATABASE_URL) ---

if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,  # log SQL in dev only
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver/ORM failures into StoreUnavailable.

    Services only know the error kinds in core/errors.py; this is the one
    place SQLAlchemy exceptions are turned into them.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store operation failed: %s (%s)", operation, exc.__class__.__name__)
        raise StoreUnavailable(f"{operation} failed") from exc


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
