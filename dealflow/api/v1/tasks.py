"""Task and follow-up endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.tasks import FollowUpCreateRequest, TaskCreateRequest, TaskResponse, TaskUpdateRequest
from dealflow.services.task_service import TaskService

router = APIRouter(tags=["tasks"])


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(
    assigned_to_id: int | None = Query(default=None, alias="assignedToId", ge=1),
    user: CurrentUser = Depends(require("tasks.read")),
    db: Session = Depends(get_db),
) -> list:
    return TaskService(db).list_tasks(user.tenant_id, assigned_to_id=assigned_to_id)


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreateRequest,
    user: CurrentUser = Depends(require("tasks.write")),
    db: Session = Depends(get_db),
):
    return TaskService(db).create_task(user.tenant_id, payload.model_dump(exclude_unset=True), actor_id=user.user_id)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    payload: TaskUpdateRequest,
    user: CurrentUser = Depends(require("tasks.write")),
    db: Session = Depends(get_db),
):
    return TaskService(db).update_task(user.tenant_id, task_id, payload.model_dump(exclude_unset=True))


@router.post("/tasks/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: int,
    user: CurrentUser = Depends(require("tasks.write")),
    db: Session = Depends(get_db),
):
    return TaskService(db).complete_task(user.tenant_id, task_id, actor_id=user.user_id)


@router.get("/follow-ups", response_model=list[TaskResponse])
def list_follow_ups(
    lead_id: int | None = Query(default=None, alias="leadId", ge=1),
    user: CurrentUser = Depends(require("tasks.read")),
    db: Session = Depends(get_db),
) -> list:
    return TaskService(db).list_follow_ups(user.tenant_id, lead_id=lead_id)


@router.post("/follow-ups", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_follow_up(
    payload: FollowUpCreateRequest,
    user: CurrentUser = Depends(require("tasks.write")),
    db: Session = Depends(get_db),
):
    data = payload.model_dump(exclude_unset=True)
    data["related_lead_id"] = data.pop("lead_id")
    if "deal_id" in data:
        data["related_deal_id"] = data.pop("deal_id")
    return TaskService(db).create_follow_up(user.tenant_id, data, actor_id=user.user_id)
