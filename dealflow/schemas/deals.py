"""Deal request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from dealflow.schemas.common import CamelModel


class DealCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    lead_id: int = Field(ge=1)
    value: float = Field(default=0, ge=0)
    stage: str | None = Field(default=None, min_length=1, max_length=100)
    probability: int | None = Field(default=None, ge=0, le=100)
    close_date: date | None = None
    owner_id: int | None = Field(default=None, ge=1)


class DealUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    value: float | None = Field(default=None, ge=0)
    probability: int | None = Field(default=None, ge=0, le=100)
    close_date: date | None = None
    owner_id: int | None = Field(default=None, ge=1)


class DealStageUpdateRequest(CamelModel):
    stage: str = Field(min_length=1, max_length=100)
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_version: int | None = Field(default=None, ge=1)
    reason: str | None = Field(default=None, max_length=2000)


class DealResponse(CamelModel):
    id: int
    name: str
    value: float
    probability: int
    stage: str
    close_date: date | None = None
    owner_id: int | None = None
    lead_id: int | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
