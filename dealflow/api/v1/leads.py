"""Lead endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.leads import (
    LeadCreateRequest,
    LeadListResponse,
    LeadNoteRequest,
    LeadNoteResponse,
    LeadResponse,
    LeadUpdateRequest,
)
from dealflow.services.lead_service import LeadService

router = APIRouter(prefix="/leads", tags=["leads"])


@router.get("", response_model=LeadListResponse)
def list_leads(
    status_filter: str | None = Query(default=None, alias="status"),
    owner_id: int | None = Query(default=None, alias="ownerId", ge=1),
    source: str | None = Query(default=None),
    temperature: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    user: CurrentUser = Depends(require("leads.read")),
    db: Session = Depends(get_db),
) -> dict:
    filters = {"status": status_filter, "owner_id": owner_id, "source": source, "temperature": temperature}
    return LeadService(db).list_leads(user.tenant_id, filters=filters, search=search, page=page, limit=limit)


@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreateRequest,
    user: CurrentUser = Depends(require("leads.write")),
    db: Session = Depends(get_db),
):
    return LeadService(db).create_lead(user.tenant_id, payload.model_dump(exclude_unset=True), actor_id=user.user_id)


@router.get("/{lead_id}", response_model=LeadResponse)
def get_lead(lead_id: int, user: CurrentUser = Depends(require("leads.read")), db: Session = Depends(get_db)):
    return LeadService(db).get_lead(user.tenant_id, lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
def update_lead(
    lead_id: int,
    payload: LeadUpdateRequest,
    user: CurrentUser = Depends(require("leads.write")),
    db: Session = Depends(get_db),
):
    return LeadService(db).update_lead(
        user.tenant_id, lead_id, payload.model_dump(exclude_unset=True), actor_id=user.user_id
    )


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(
    lead_id: int,
    user: CurrentUser = Depends(require("leads.write")),
    db: Session = Depends(get_db),
) -> Response:
    LeadService(db).delete_lead(user.tenant_id, lead_id, actor_id=user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{lead_id}/notes", response_model=LeadNoteResponse, status_code=status.HTTP_201_CREATED)
def add_lead_note(
    lead_id: int,
    payload: LeadNoteRequest,
    user: CurrentUser = Depends(require("leads.write")),
    db: Session = Depends(get_db),
) -> dict:
    entry = LeadService(db).add_note(user.tenant_id, lead_id, payload.note, actor_id=user.user_id)
    return {"message": "Note added successfully", "id": entry.id}
