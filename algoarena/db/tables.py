"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in algoarena/models/.
Repos convert between rows and dataclasses; nothing outside repos/
touches a Row class.

Ids are opaque strings (hex uuids for rows created here, whatever the
identity service issues for users).
"""

from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from algoarena.db.engine import Base
from algoarena.models.catalog import Level

_ID = String(64)

_LEVEL = Enum(Level, name="question_level", values_callable=lambda e: [m.value for m in e])


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(_ID, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class QuestionRow(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("ix_questions_category_level", "category_id", "level"),
        Index("ix_questions_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    statement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("categories.id"), nullable=False
    )
    level: Mapped[Level] = mapped_column(_LEVEL, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(_ID, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class UserProgressRow(Base):
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_user_progress_user_question"),
        Index("ix_user_progress_user_solved", "user_id", "solved", "solved_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(_ID, nullable=False)
    question_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    solved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    level: Mapped[Level] = mapped_column(_LEVEL, nullable=False)
    solved_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class ApproachRow(Base):
    __tablename__ = "approaches"
    __table_args__ = (Index("ix_approaches_user_question", "user_id", "question_id"),)

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(_ID, nullable=False)
    question_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    content_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
