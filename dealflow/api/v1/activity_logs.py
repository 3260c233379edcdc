"""Activity log feed endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.feeds import ActivityLogResponse
from dealflow.services.activity_service import DEFAULT_LIMIT, MAX_LIMIT, ActivityLogService

router = APIRouter(tags=["activity-logs"])


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
def list_activity_logs(
    target_type: str | None = Query(default=None, alias="targetType"),
    target_id: int | None = Query(default=None, alias="targetId"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    user: CurrentUser = Depends(require("logs.read")),
    db: Session = Depends(get_db),
) -> list:
    return ActivityLogService(db).list_entries(
        user.tenant_id, target_type=target_type, target_id=target_id, limit=limit
    )
