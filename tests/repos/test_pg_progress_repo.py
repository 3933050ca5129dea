from __future__ import annotations

import re

from sqlalchemy.dialects import postgresql

from algoarena.models.catalog import Level
from algoarena.models.progress import ProgressRecord
from algoarena.repos.pg_progress_repo import upsert_statement
from tests.conftest import NOW


def _compile(record: ProgressRecord) -> tuple[str, dict]:
    compiled = upsert_statement(record).compile(dialect=postgresql.dialect())
    return " ".join(str(compiled).split()), compiled.params


def test_upsert_targets_user_question_constraint() -> None:
    sql, _ = _compile(ProgressRecord("u1", "q1", True, Level.EASY, NOW))

    assert sql.startswith("INSERT INTO user_progress")
    assert "ON CONFLICT ON CONSTRAINT uq_user_progress_user_question DO UPDATE SET" in sql
    assert "RETURNING" in sql


def test_upsert_keeps_first_solved_at_and_clears_on_unsolve() -> None:
    sql, _ = _compile(ProgressRecord("u1", "q1", True, Level.EASY, NOW))

    # Re-solve: the stored solved_at wins over the incoming one.
    # Unsolve: the CASE falls through to NULL.
    assert re.search(
        r"solved_at=CASE WHEN \(?excluded\.solved IS true\)? "
        r"THEN coalesce\(user_progress\.solved_at, excluded\.solved_at\) "
        r"ELSE NULL END",
        sql.replace("solved_at = CASE", "solved_at=CASE"),
    ), sql


def test_upsert_binds_record_values() -> None:
    _, solved = _compile(ProgressRecord("u1", "q1", True, Level.HARD, NOW))
    _, unsolved = _compile(ProgressRecord("u1", "q1", False, Level.HARD))

    assert solved["solved"] is True
    assert solved["solved_at"] == NOW
    assert unsolved["solved"] is False
    assert unsolved["solved_at"] is None
