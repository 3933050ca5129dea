from __future__ import annotations

import datetime
from dataclasses import dataclass

from algoarena.models.catalog import Level, new_id


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """Solved state of one user for one question.

    Identity is (user_id, question_id).  solved_at is set exactly when
    solved is true; construction rejects any other combination, so no
    code path can produce a record that breaks the rule.
    """

    user_id: str
    question_id: str
    solved: bool
    level: Level
    solved_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        if self.solved and self.solved_at is None:
            raise ValueError("solved progress requires solved_at")
        if not self.solved and self.solved_at is not None:
            raise ValueError("unsolved progress must not carry solved_at")

    @staticmethod
    def mark(
        *,
        user_id: str,
        question_id: str,
        level: Level,
        solved: bool,
        now: datetime.datetime,
    ) -> ProgressRecord:
        """Candidate record for an update.

        Stores merge it with any existing record: an already-solved record
        keeps its original solved_at.
        """
        return ProgressRecord(
            user_id=user_id,
            question_id=question_id,
            solved=solved,
            level=level,
            solved_at=now if solved else None,
        )

    def merged_into(self, existing: ProgressRecord | None) -> ProgressRecord:
        if (
            self.solved
            and existing is not None
            and existing.solved
            and existing.solved_at is not None
        ):
            return ProgressRecord(
                user_id=self.user_id,
                question_id=self.question_id,
                solved=True,
                level=self.level,
                solved_at=existing.solved_at,
            )
        return self


@dataclass(frozen=True, slots=True)
class ApproachRecord:
    """A submitted solution attempt.  Only ever counted here."""

    id: str
    user_id: str
    question_id: str
    content_size: int = 0

    @staticmethod
    def new(*, user_id: str, question_id: str, content_size: int = 0) -> ApproachRecord:
        return ApproachRecord(
            id=new_id(),
            user_id=user_id,
            question_id=question_id,
            content_size=content_size,
        )
