"""Task and follow-up schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from dealflow.models.enums import TaskStatus
from dealflow.schemas.common import CamelModel


class TaskCreateRequest(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    due_date: datetime | None = None
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=0, le=100)
    intent: str | None = Field(default=None, max_length=255)
    summary: str | None = Field(default=None, max_length=10000)
    assigned_to_id: int | None = Field(default=None, ge=1)
    related_lead_id: int | None = Field(default=None, ge=1)
    related_deal_id: int | None = Field(default=None, ge=1)


class FollowUpCreateRequest(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    lead_id: int = Field(ge=1)
    deal_id: int | None = Field(default=None, ge=1)
    due_date: datetime | None = None
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=0, le=100)
    action_type: str | None = Field(default=None, max_length=50)
    summary: str | None = Field(default=None, max_length=10000)
    suggested_message: str | None = Field(default=None, max_length=10000)
    best_contact_time: str | None = Field(default=None, max_length=100)
    assigned_to_id: int | None = Field(default=None, ge=1)


class TaskUpdateRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    status: TaskStatus | None = None
    due_date: datetime | None = None
    priority: int | None = Field(default=None, ge=0, le=100)
    assigned_to_id: int | None = Field(default=None, ge=1)
    summary: str | None = Field(default=None, max_length=10000)


class TaskResponse(CamelModel):
    id: int
    kind: str
    title: str
    due_date: datetime | None = None
    completed: bool
    completed_at: datetime | None = None
    status: str
    priority: int
    intent: str | None = None
    summary: str | None = None
    assigned_to_id: int | None = None
    related_lead_id: int | None = None
    related_deal_id: int | None = None
    suggested_message: str | None = None
    best_contact_time: str | None = None
    action_type: str | None = None
