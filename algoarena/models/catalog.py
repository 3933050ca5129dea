from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import StrEnum
from uuid import uuid4


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def new_id() -> str:
    return uuid4().hex


class Level(StrEnum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @property
    def key(self) -> str:
        """Lower-case name used in per-level breakdown maps (easy/medium/hard)."""
        return self.value.lower()

    @classmethod
    def from_string(cls, raw: str) -> Level:
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(
                f"level must be easy|medium|hard (got {raw!r})"
            ) from None


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    created_by_id: str | None = None
    created_at: datetime.datetime = field(default_factory=_utcnow)

    @staticmethod
    def new(*, name: str, created_by_id: str | None = None) -> Category:
        return Category(id=new_id(), name=name.strip(), created_by_id=created_by_id)


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    title: str
    category_id: str
    level: Level
    statement: str = ""
    created_by_id: str | None = None
    created_at: datetime.datetime = field(default_factory=_utcnow)

    @staticmethod
    def new(
        *,
        title: str,
        category_id: str,
        level: Level,
        statement: str = "",
        created_by_id: str | None = None,
    ) -> Question:
        return Question(
            id=new_id(),
            title=title.strip(),
            category_id=category_id,
            level=level,
            statement=statement,
            created_by_id=created_by_id,
        )
