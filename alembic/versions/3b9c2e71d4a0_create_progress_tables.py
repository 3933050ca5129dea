"""create progress tables

Revision ID: 3b9c2e71d4a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b9c2e71d4a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_level = sa.Enum("EASY", "MEDIUM", "HARD", name="question_level")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("created_by_id", sa.String(length=64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_table(
        "questions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("statement", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "category_id",
            sa.String(length=64),
            sa.ForeignKey("categories.id"),
            nullable=False,
        ),
        sa.Column("level", _level, nullable=False),
        sa.Column("created_by_id", sa.String(length=64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_questions_category_level", "questions", ["category_id", "level"])
    op.create_index("ix_questions_created_at", "questions", ["created_at"])

    op.create_table(
        "user_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "question_id",
            sa.String(length=64),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("solved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("level", _level, nullable=False),
        sa.Column("solved_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "user_id", "question_id", name="uq_user_progress_user_question"
        ),
        # solved and solved_at move together
        sa.CheckConstraint(
            "(solved AND solved_at IS NOT NULL) OR (NOT solved AND solved_at IS NULL)",
            name="ck_user_progress_solved_at",
        ),
    )
    op.create_index(
        "ix_user_progress_user_solved", "user_progress", ["user_id", "solved", "solved_at"]
    )

    op.create_table(
        "approaches",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "question_id",
            sa.String(length=64),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content_size", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_approaches_user_question", "approaches", ["user_id", "question_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_approaches_user_question", table_name="approaches")
    op.drop_table("approaches")
    op.drop_index("ix_user_progress_user_solved", table_name="user_progress")
    op.drop_table("user_progress")
    op.drop_index("ix_questions_created_at", table_name="questions")
    op.drop_index("ix_questions_category_level", table_name="questions")
    op.drop_table("questions")
    op.drop_table("categories")
    op.drop_table("users")
    _level.drop(op.get_bind(), checkfirst=True)
