"""Notification, activity log and attendance schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import Field

from dealflow.schemas.common import CamelModel


class NotificationResponse(CamelModel):
    id: int
    type: str
    title: str
    description: str
    is_read: bool
    created_at: datetime


class MarkAllReadResponse(CamelModel):
    success: bool = True
    updated: int


class ActivityLogResponse(CamelModel):
    id: int
    actor_id: int | None = None
    actor_name: str
    action: str
    summary: str
    source: str
    target_type: str
    target_id: int
    target_name: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime


class CheckInRequest(CamelModel):
    work_from_home: bool = False
    notes: str | None = Field(default=None, max_length=2000)


class AttendanceResponse(CamelModel):
    id: int
    user_id: int
    work_date: date = Field(serialization_alias="date")
    status: str
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    work_from_home: bool
    notes: str | None = None
