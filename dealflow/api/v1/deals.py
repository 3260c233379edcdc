"""Deal endpoints, including the pipeline stage transition."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.deals import DealCreateRequest, DealResponse, DealStageUpdateRequest, DealUpdateRequest
from dealflow.services.deal_service import DealService

router = APIRouter(prefix="/deals", tags=["deals"])


@router.get("", response_model=list[DealResponse])
def list_deals(
    owner_id: int | None = Query(default=None, alias="ownerId", ge=1),
    stage: str | None = Query(default=None),
    user: CurrentUser = Depends(require("deals.read")),
    db: Session = Depends(get_db),
) -> list:
    return DealService(db).list_deals(user.tenant_id, owner_id=owner_id, stage=stage)


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
def create_deal(
    payload: DealCreateRequest,
    user: CurrentUser = Depends(require("deals.write")),
    db: Session = Depends(get_db),
):
    return DealService(db).create_deal(
        user.tenant_id,
        name=payload.name,
        lead_id=payload.lead_id,
        actor_id=user.user_id,
        value=payload.value,
        stage=payload.stage,
        probability=payload.probability,
        close_date=payload.close_date,
        owner_id=payload.owner_id,
    )


@router.get("/{deal_id}", response_model=DealResponse)
def get_deal(deal_id: int, user: CurrentUser = Depends(require("deals.read")), db: Session = Depends(get_db)):
    return DealService(db).get_deal(user.tenant_id, deal_id)


@router.patch("/{deal_id}", response_model=DealResponse)
def update_deal(
    deal_id: int,
    payload: DealUpdateRequest,
    user: CurrentUser = Depends(require("deals.write")),
    db: Session = Depends(get_db),
):
    return DealService(db).update_deal(user.tenant_id, deal_id, payload.model_dump(exclude_unset=True))


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deal(
    deal_id: int,
    user: CurrentUser = Depends(require("deals.write")),
    db: Session = Depends(get_db),
) -> Response:
    DealService(db).delete_deal(user.tenant_id, deal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{deal_id}/stage", response_model=DealResponse)
def update_deal_stage(
    deal_id: int,
    payload: DealStageUpdateRequest,
    user: CurrentUser = Depends(require("deals.write")),
    db: Session = Depends(get_db),
):
    """Move a deal to another pipeline stage."""
    return DealService(db).transition_stage(
        user.tenant_id,
        deal_id,
        payload.stage,
        actor_id=user.user_id,
        probability=payload.probability,
        expected_version=payload.expected_version,
        reason=payload.reason,
    )
