"""Lead request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from dealflow.models.enums import LeadStatus, LeadTemperature
from dealflow.schemas.common import CamelModel, PageMeta


class LeadCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    company: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    source: str | None = Field(default=None, max_length=100)
    status: LeadStatus | None = None
    temperature: LeadTemperature | None = None
    score: int | None = Field(default=None, ge=0, le=100)
    notes: str | None = Field(default=None, max_length=10000)
    owner_id: int | None = Field(default=None, ge=1)


class LeadUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    company: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    source: str | None = Field(default=None, max_length=100)
    status: LeadStatus | None = None
    temperature: LeadTemperature | None = None
    score: int | None = Field(default=None, ge=0, le=100)
    notes: str | None = Field(default=None, max_length=10000)
    owner_id: int | None = Field(default=None, ge=1)


class LeadNoteRequest(CamelModel):
    """Note text. Blank notes are rejected by the service with a 400."""

    note: str | None = Field(default=None, max_length=10000)


class LeadNoteResponse(CamelModel):
    message: str
    id: int


class WebhookLeadRequest(CamelModel):
    """Inbound lead payload. Required fields are checked by the service to answer 400."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    source: str | None = None
    notes: str | None = None


class WebhookLeadResponse(CamelModel):
    message: str
    lead_id: int


class LeadResponse(CamelModel):
    id: int
    name: str
    email: str
    company: str | None = None
    phone: str | None = None
    source: str
    status: str
    temperature: str
    score: int
    notes: str | None = None
    owner_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LeadListResponse(CamelModel):
    data: list[LeadResponse]
    meta: PageMeta
