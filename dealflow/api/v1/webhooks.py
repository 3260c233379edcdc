"""Inbound webhook endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from dealflow.core.config import get_config
from dealflow.core.exceptions import AuthenticationError
from dealflow.database.db import get_db
from dealflow.schemas.leads import WebhookLeadRequest, WebhookLeadResponse
from dealflow.services.lead_service import LeadService
from dealflow.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _verify_webhook_token(token: str | None) -> None:
    secret = get_config().WEBHOOK_SECRET
    if secret is None:
        return
    if token is None or not hmac.compare_digest(token, secret):
        raise AuthenticationError("Invalid webhook token.")


@router.post("/leads", response_model=WebhookLeadResponse, status_code=status.HTTP_201_CREATED)
def receive_lead(
    payload: WebhookLeadRequest,
    response: Response,
    webhook_token: str | None = Header(default=None, alias="X-Webhook-Token"),
    tenant_key: str | None = Header(default=None, alias="X-Tenant-Key"),
    db: Session = Depends(get_db),
) -> WebhookLeadResponse:
    """Capture a lead from an external form or sheet. Known emails answer 200 with the existing id."""
    _verify_webhook_token(webhook_token)
    tenant = TenantService(db).get_by_key(tenant_key or get_config().DEFAULT_TENANT_KEY)

    lead, created = LeadService(db).ingest_webhook_lead(tenant.id, payload.model_dump())
    if not created:
        response.status_code = status.HTTP_200_OK
        return WebhookLeadResponse(message="Lead already exists", lead_id=lead.id)
    return WebhookLeadResponse(message="Lead created successfully", lead_id=lead.id)
