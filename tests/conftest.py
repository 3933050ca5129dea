from __future__ import annotations

import asyncio
import datetime
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from algoarena.api.dependencies import memory_stores
from algoarena.main import app
from algoarena.models.catalog import Category, Level, Question
from algoarena.models.user import User
from algoarena.repos.stores import Stores
from algoarena.services.cache import InMemoryCacheService, cache_service

# Ensure repo root is on sys.path so `import algoarena` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

NOW = datetime.datetime(2026, 3, 10, 12, 0, tzinfo=datetime.UTC)


def fixed_clock(now: datetime.datetime = NOW):
    return lambda: now


@pytest.fixture(autouse=True)
def reset_memory_stores() -> None:
    """Clear the app's in-memory stores between tests."""
    memory_stores.progress._store.clear()  # type: ignore[attr-defined]
    memory_stores.approaches._store.clear()  # type: ignore[attr-defined]
    memory_stores.catalog._categories.clear()  # type: ignore[attr-defined]
    memory_stores.catalog._questions.clear()  # type: ignore[attr-defined]
    memory_stores.users._by_id.clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def stores() -> Stores:
    """Fresh, isolated in-memory stores for service-level tests."""
    return Stores.in_memory()


@pytest.fixture
def cache() -> InMemoryCacheService:
    return InMemoryCacheService()


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------


def user_headers(user_id: str = "user-1", roles: str = "") -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if roles:
        headers["X-User-Roles"] = roles
    return headers


def admin_headers(user_id: str = "admin-1") -> dict[str, str]:
    return user_headers(user_id, roles="admin")


def add_user(stores: Stores, user_id: str = "user-1") -> User:
    user = User(id=user_id, email=f"{user_id}@example.com")
    asyncio.run(stores.users.add(user))
    return user


def add_category(stores: Stores, name: str, category_id: str | None = None) -> Category:
    category = Category(id=category_id or f"cat-{name.lower()}", name=name)
    asyncio.run(stores.catalog.add_category(category))
    return category


def add_questions(
    stores: Stores,
    category: Category,
    level: Level,
    count: int,
    *,
    start: datetime.datetime = NOW - datetime.timedelta(days=30),
) -> list[Question]:
    """Add `count` questions; later ones are newer."""
    existing = len(asyncio.run(stores.catalog.all_questions()))
    questions = []
    for i in range(count):
        n = existing + i
        question = Question(
            id=f"q-{n:03d}",
            title=f"{category.name} {level.key} #{i}",
            category_id=category.id,
            level=level,
            created_at=start + datetime.timedelta(minutes=n),
        )
        asyncio.run(stores.catalog.add_question(question))
        questions.append(question)
    return questions


class CountingRepo:
    """Wraps a repo and counts awaited calls per method name."""

    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls: dict[str, int] = {}

    def __getattr__(self, name: str):
        target = getattr(self._inner, name)

        async def _counted(*args, **kwargs):
            self.calls[name] = self.calls.get(name, 0) + 1
            return await target(*args, **kwargs)

        return _counted
