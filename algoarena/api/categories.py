from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from algoarena.api.dependencies import (
    get_catalog_service,
    get_progress_service,
    require_role,
    require_user,
)
from algoarena.models.catalog import Category
from algoarena.models.principal import Principal
from algoarena.models.summaries import CategorySummary
from algoarena.services.catalog_service import CatalogService
from algoarena.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/categories", tags=["categories"])

Caller = Annotated[Principal, Depends(require_user)]
Admin = Annotated[Principal, Depends(require_role("admin"))]
Progress = Annotated[ProgressService, Depends(get_progress_service)]
Catalog = Annotated[CatalogService, Depends(get_catalog_service)]


class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CategoryOut(BaseModel):
    id: str
    name: str
    created_by_id: str | None = None
    created_at: datetime.datetime

    @classmethod
    def from_category(cls, c: Category) -> CategoryOut:
        return cls(
            id=c.id, name=c.name, created_by_id=c.created_by_id, created_at=c.created_at
        )


class CategoryDeletedOut(BaseModel):
    id: str
    questions_deleted: int


@router.get("/progress", response_model=list[CategorySummary])
async def list_categories_with_progress(
    principal: Caller, service: Progress
) -> list[CategorySummary]:
    return await service.get_categories_with_progress(principal.user_id)


@router.get("/{category_id}/progress", response_model=CategorySummary)
async def get_category_progress(
    category_id: str, principal: Caller, service: Progress
) -> CategorySummary:
    return await service.get_category_progress(principal.user_id, category_id)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryIn, principal: Admin, catalog: Catalog) -> CategoryOut:
    category = await catalog.create_category(body.name, created_by_id=principal.user_id)
    return CategoryOut.from_category(category)


@router.patch("/{category_id}", response_model=CategoryOut)
async def rename_category(
    category_id: str, body: CategoryIn, _principal: Admin, catalog: Catalog
) -> CategoryOut:
    category = await catalog.rename_category(category_id, body.name)
    return CategoryOut.from_category(category)


@router.delete("/{category_id}", response_model=CategoryDeletedOut)
async def delete_category(
    category_id: str, _principal: Admin, catalog: Catalog
) -> CategoryDeletedOut:
    removed = await catalog.delete_category(category_id)
    return CategoryDeletedOut(id=category_id, questions_deleted=removed)
