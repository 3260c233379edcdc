"""Workflow automation rule endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.workflows import (
    WorkflowCreateRequest,
    WorkflowLogResponse,
    WorkflowResponse,
    WorkflowUpdateRequest,
)
from dealflow.services.workflow_service import WorkflowService

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("", response_model=list[WorkflowResponse])
def list_workflows(user: CurrentUser = Depends(require("workflows.read")), db: Session = Depends(get_db)) -> list:
    return WorkflowService(db).list_workflows(user.tenant_id)


@router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
def create_workflow(
    payload: WorkflowCreateRequest,
    user: CurrentUser = Depends(require("workflows.write")),
    db: Session = Depends(get_db),
):
    return WorkflowService(db).create_workflow(
        user.tenant_id,
        name=payload.name,
        trigger_type=payload.trigger_type,
        actions=payload.actions,
        is_active=payload.is_active,
    )


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
def update_workflow(
    workflow_id: int,
    payload: WorkflowUpdateRequest,
    user: CurrentUser = Depends(require("workflows.write")),
    db: Session = Depends(get_db),
):
    return WorkflowService(db).update_workflow(user.tenant_id, workflow_id, payload.model_dump(exclude_unset=True))


@router.get("/logs", response_model=list[WorkflowLogResponse])
def list_workflow_logs(
    workflow_id: int | None = Query(default=None, alias="workflowId", ge=1),
    limit: int = Query(default=100, ge=1, le=500),
    user: CurrentUser = Depends(require("workflows.read")),
    db: Session = Depends(get_db),
) -> list:
    return WorkflowService(db).list_logs(user.tenant_id, workflow_id=workflow_id, limit=limit)
