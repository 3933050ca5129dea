"""Progress read models and the progress write.

  GET  /v1/progress/bulk                     snapshot: every record + stats
  GET  /v1/progress/stats                    stats only
  GET  /v1/progress/recent?limit=10          most recently solved questions
  GET  /v1/progress/global                   platform-wide aggregate
  POST /v1/progress/status                   solved flags for a set of ids
  GET  /v1/progress/questions/{id}           one record (404 if none)
  PUT  /v1/progress/questions/{id}           mark solved / unsolved
  GET  /v1/progress/questions/{id}/solved    cached point lookup

All endpoints act on the caller's own progress (X-User-Id).
"""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from algoarena.api.dependencies import get_progress_service, require_user
from algoarena.models.catalog import Level
from algoarena.models.principal import Principal
from algoarena.models.progress import ProgressRecord
from algoarena.models.summaries import (
    BulkProgressSnapshot,
    GlobalStats,
    ProgressStats,
    RecentSolvedQuestion,
)
from algoarena.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/progress", tags=["progress"])

Service = Annotated[ProgressService, Depends(get_progress_service)]
Caller = Annotated[Principal, Depends(require_user)]


class ProgressUpdateIn(BaseModel):
    solved: bool


class ProgressOut(BaseModel):
    user_id: str
    question_id: str
    solved: bool
    level: Level
    solved_at: datetime.datetime | None = None

    @classmethod
    def from_record(cls, record: ProgressRecord) -> ProgressOut:
        return cls(
            user_id=record.user_id,
            question_id=record.question_id,
            solved=record.solved,
            level=record.level,
            solved_at=record.solved_at,
        )


class SolvedOut(BaseModel):
    question_id: str
    solved: bool


class StatusIn(BaseModel):
    question_ids: list[str] = Field(default_factory=list, max_length=500)


@router.get("/bulk", response_model=BulkProgressSnapshot)
async def get_bulk_progress(principal: Caller, service: Service) -> BulkProgressSnapshot:
    return await service.get_bulk_progress(principal.user_id)


@router.get("/stats", response_model=ProgressStats)
async def get_stats(principal: Caller, service: Service) -> ProgressStats:
    return await service.get_stats(principal.user_id)


@router.get("/recent", response_model=list[RecentSolvedQuestion])
async def get_recent_solved(
    principal: Caller,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> list[RecentSolvedQuestion]:
    return await service.get_recent_solved_questions(principal.user_id, limit)


@router.get("/global", response_model=GlobalStats)
async def get_global_stats(_principal: Caller, service: Service) -> GlobalStats:
    return await service.get_global_stats()


@router.post("/status", response_model=dict[str, bool])
async def get_bulk_status(
    body: StatusIn, principal: Caller, service: Service
) -> dict[str, bool]:
    return await service.get_bulk_progress_status(principal.user_id, body.question_ids)


@router.get("/questions/{question_id}", response_model=ProgressOut)
async def get_progress(question_id: str, principal: Caller, service: Service) -> ProgressOut:
    record = await service.get_progress(principal.user_id, question_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="progress not found",
        )
    return ProgressOut.from_record(record)


@router.put("/questions/{question_id}", response_model=ProgressOut)
async def update_progress(
    question_id: str,
    body: ProgressUpdateIn,
    principal: Caller,
    service: Service,
) -> ProgressOut:
    record = await service.update_progress(principal.user_id, question_id, body.solved)
    return ProgressOut.from_record(record)


@router.get("/questions/{question_id}/solved", response_model=SolvedOut)
async def is_question_solved(question_id: str, principal: Caller, service: Service) -> SolvedOut:
    solved = await service.is_question_solved(principal.user_id, question_id)
    return SolvedOut(question_id=question_id, solved=solved)
