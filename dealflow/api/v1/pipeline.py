"""Pipeline board, analytics and stage configuration endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.core.exceptions import ValidationError
from dealflow.database.db import get_db
from dealflow.schemas.pipeline import (
    PipelineAnalyticsResponse,
    PipelineBoardResponse,
    PipelineStageCreateRequest,
    PipelineStageResponse,
    PipelineStageUpdateRequest,
)
from dealflow.services.analytics_service import PipelineAnalyticsService
from dealflow.services.stage_service import PipelineStageService

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("", response_model=PipelineBoardResponse)
def get_pipeline(
    owner_id: int | None = Query(default=None, alias="ownerId", ge=1),
    user: CurrentUser = Depends(require("pipeline.read")),
    db: Session = Depends(get_db),
) -> dict:
    return PipelineAnalyticsService(db).board(user.tenant_id, owner_id=owner_id)


@router.get("/analytics", response_model=PipelineAnalyticsResponse)
def get_pipeline_analytics(
    owner_id: int | None = Query(default=None, alias="ownerId", ge=1),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    user: CurrentUser = Depends(require("analytics.read")),
    db: Session = Depends(get_db),
) -> dict:
    if start is not None and end is not None and start > end:
        raise ValidationError("start must be on or before end.")
    return PipelineAnalyticsService(db).summarize(user.tenant_id, owner_id=owner_id, start=start, end=end)


@router.get("/stages", response_model=list[PipelineStageResponse])
def list_stages(user: CurrentUser = Depends(require("pipeline.read")), db: Session = Depends(get_db)) -> list:
    return PipelineStageService(db).list_stages(user.tenant_id)


@router.post("/stages", response_model=PipelineStageResponse, status_code=status.HTTP_201_CREATED)
def create_stage(
    payload: PipelineStageCreateRequest,
    user: CurrentUser = Depends(require("settings.write")),
    db: Session = Depends(get_db),
):
    return PipelineStageService(db).create_stage(
        user.tenant_id,
        label=payload.label,
        probability=payload.probability,
        outcome=payload.outcome,
        color=payload.color,
        position=payload.position,
    )


@router.patch("/stages/{stage_id}", response_model=PipelineStageResponse)
def update_stage(
    stage_id: int,
    payload: PipelineStageUpdateRequest,
    user: CurrentUser = Depends(require("settings.write")),
    db: Session = Depends(get_db),
):
    return PipelineStageService(db).update_stage(user.tenant_id, stage_id, payload.model_dump(exclude_unset=True))
