"""Question list views and admin question writes.

  GET    /v1/questions/summary            page of questions with the caller's progress
  POST   /v1/questions/approach-counts    approach counts for a set of ids
  POST   /v1/questions                    create (admin)
  PATCH  /v1/questions/{id}               update (admin)
  DELETE /v1/questions/{id}               delete with progress + approaches (admin)
"""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from algoarena.api.dependencies import (
    get_catalog_service,
    get_progress_service,
    require_role,
    require_user,
)
from algoarena.models.catalog import Level, Question
from algoarena.models.principal import Principal
from algoarena.models.summaries import PageFilter, QuestionPage
from algoarena.services.catalog_service import CatalogService
from algoarena.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/questions", tags=["questions"])

Admin = Annotated[Principal, Depends(require_role("admin"))]
Catalog = Annotated[CatalogService, Depends(get_catalog_service)]


def _parse_level(raw: str | None) -> Level | None:
    if raw is None or not raw.strip():
        return None
    try:
        return Level.from_string(raw)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from None


class QuestionIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    category_id: str
    level: Level
    statement: str = ""

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v: object) -> object:
        return Level.from_string(v) if isinstance(v, str) else v


class QuestionPatch(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    category_id: str | None = None
    level: Level | None = None
    statement: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v: object) -> object:
        return Level.from_string(v) if isinstance(v, str) else v


class QuestionOut(BaseModel):
    id: str
    title: str
    category_id: str
    level: Level
    statement: str
    created_by_id: str | None = None
    created_at: datetime.datetime

    @classmethod
    def from_question(cls, q: Question) -> QuestionOut:
        return cls(
            id=q.id,
            title=q.title,
            category_id=q.category_id,
            level=q.level,
            statement=q.statement,
            created_by_id=q.created_by_id,
            created_at=q.created_at,
        )


class ApproachCountsIn(BaseModel):
    question_ids: list[str] = Field(default_factory=list, max_length=500)


@router.get("/summary", response_model=QuestionPage)
async def get_questions_summary(
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 20,
    category_id: str | None = None,
    level: str | None = None,
    search: str | None = None,
) -> QuestionPage:
    page_filter = PageFilter(
        page=page,
        size=size,
        category_id=category_id or None,
        level=_parse_level(level),
        search=search,
    )
    return await service.get_questions_with_progress(principal.user_id, page_filter)


@router.post("/approach-counts", response_model=dict[str, int])
async def get_approach_counts(
    body: ApproachCountsIn,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> dict[str, int]:
    return await service.get_bulk_approach_counts(principal.user_id, body.question_ids)


@router.post("", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
async def create_question(body: QuestionIn, principal: Admin, catalog: Catalog) -> QuestionOut:
    question = await catalog.create_question(
        title=body.title,
        category_id=body.category_id,
        level=body.level,
        statement=body.statement,
        created_by_id=principal.user_id,
    )
    return QuestionOut.from_question(question)


@router.patch("/{question_id}", response_model=QuestionOut)
async def update_question(
    question_id: str, body: QuestionPatch, _principal: Admin, catalog: Catalog
) -> QuestionOut:
    question = await catalog.update_question(
        question_id,
        title=body.title,
        category_id=body.category_id,
        level=body.level,
        statement=body.statement,
    )
    return QuestionOut.from_question(question)


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: str, _principal: Admin, catalog: Catalog) -> None:
    await catalog.delete_question(question_id)
