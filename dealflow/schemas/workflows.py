"""Workflow automation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from dealflow.models.enums import EventType
from dealflow.schemas.common import CamelModel


class WorkflowCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    trigger_type: EventType
    actions: list[dict[str, Any]] = Field(min_length=1)
    is_active: bool = True


class WorkflowUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    trigger_type: EventType | None = None
    actions: list[dict[str, Any]] | None = None
    is_active: bool | None = None


class WorkflowResponse(CamelModel):
    id: int
    name: str
    trigger_type: str
    actions: list[dict[str, Any]]
    is_active: bool
    created_at: datetime | None = None


class WorkflowLogResponse(CamelModel):
    id: int
    workflow_id: int
    outbox_event_id: int | None = None
    entity_id: int
    status: str
    actions_executed: list[str]
    duration_ms: int
    error_message: str | None = None
    created_at: datetime
