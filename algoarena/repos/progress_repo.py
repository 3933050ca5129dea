from __future__ import annotations

import datetime
from collections.abc import Collection
from dataclasses import replace
from typing import Protocol

from algoarena.models.catalog import Level
from algoarena.models.progress import ProgressRecord

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.UTC)


class ProgressRepo(Protocol):
    async def find_by_user(self, user_id: str) -> list[ProgressRecord]: ...
    async def find_by_user_and_question(
        self, user_id: str, question_id: str
    ) -> ProgressRecord | None: ...
    async def find_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[ProgressRecord]: ...
    async def find_by_user_solved(self, user_id: str) -> list[ProgressRecord]: ...
    async def find_recent_solved(
        self, user_id: str, limit: int
    ) -> list[ProgressRecord]: ...
    async def count_by_user_solved(self, user_id: str) -> int: ...
    async def count_by_user_solved_and_level(self, user_id: str, level: Level) -> int: ...
    async def count_total_solved(self) -> int: ...
    async def count_distinct_solvers(self) -> int: ...
    async def upsert(self, record: ProgressRecord) -> ProgressRecord: ...
    async def update_level_for_question(self, question_id: str, level: Level) -> None: ...
    async def delete_by_question(self, question_id: str) -> int: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], ProgressRecord] = {}

    async def find_by_user(self, user_id: str) -> list[ProgressRecord]:
        return [r for r in self._store.values() if r.user_id == user_id]

    async def find_by_user_and_question(
        self, user_id: str, question_id: str
    ) -> ProgressRecord | None:
        return self._store.get((user_id, question_id))

    async def find_by_user_and_questions(
        self, user_id: str, question_ids: Collection[str]
    ) -> list[ProgressRecord]:
        wanted = set(question_ids)
        return [
            r
            for r in self._store.values()
            if r.user_id == user_id and r.question_id in wanted
        ]

    async def find_by_user_solved(self, user_id: str) -> list[ProgressRecord]:
        return [r for r in self._store.values() if r.user_id == user_id and r.solved]

    async def find_recent_solved(self, user_id: str, limit: int) -> list[ProgressRecord]:
        solved = await self.find_by_user_solved(user_id)
        solved.sort(key=lambda r: r.solved_at or _EPOCH, reverse=True)
        return solved[:limit]

    async def count_by_user_solved(self, user_id: str) -> int:
        return len(await self.find_by_user_solved(user_id))

    async def count_by_user_solved_and_level(self, user_id: str, level: Level) -> int:
        return sum(1 for r in await self.find_by_user_solved(user_id) if r.level == level)

    async def count_total_solved(self) -> int:
        return sum(1 for r in self._store.values() if r.solved)

    async def count_distinct_solvers(self) -> int:
        return len({r.user_id for r in self._store.values() if r.solved})

    async def upsert(self, record: ProgressRecord) -> ProgressRecord:
        # No await between read and write: the merge is atomic on the loop.
        key = (record.user_id, record.question_id)
        stored = record.merged_into(self._store.get(key))
        self._store[key] = stored
        return stored

    async def update_level_for_question(self, question_id: str, level: Level) -> None:
        for key, record in list(self._store.items()):
            if record.question_id == question_id:
                self._store[key] = replace(record, level=level)

    async def delete_by_question(self, question_id: str) -> int:
        doomed = [k for k, r in self._store.items() if r.question_id == question_id]
        for key in doomed:
            del self._store[key]
        return len(doomed)
