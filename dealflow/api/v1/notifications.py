"""Notification feed endpoints for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.feeds import MarkAllReadResponse, NotificationResponse
from dealflow.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=100, ge=1, le=500),
    user: CurrentUser = Depends(require("notifications.read")),
    db: Session = Depends(get_db),
) -> list:
    return NotificationService(db).list_for_user(user.tenant_id, user.user_id, unread_only=unread_only, limit=limit)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    user: CurrentUser = Depends(require("notifications.read")),
    db: Session = Depends(get_db),
) -> MarkAllReadResponse:
    updated = NotificationService(db).mark_all_read(user.tenant_id, user.user_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    user: CurrentUser = Depends(require("notifications.read")),
    db: Session = Depends(get_db),
):
    return NotificationService(db).mark_read(user.tenant_id, user.user_id, notification_id)
