"""Home dashboard endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.pipeline import DashboardStatsResponse
from dealflow.services.analytics_service import PipelineAnalyticsService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    owner_id: int | None = Query(default=None, alias="ownerId", ge=1),
    user: CurrentUser = Depends(require("analytics.read")),
    db: Session = Depends(get_db),
) -> dict:
    return PipelineAnalyticsService(db).dashboard(user.tenant_id, owner_id=owner_id)
