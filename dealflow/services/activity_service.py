"""Read access to the append-only activity log."""

from __future__ import annotations

from dealflow.models import ActivityLog
from dealflow.services.base_service import BaseService

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


class ActivityLogService(BaseService):
    def list_entries(
        self,
        tenant_id: int,
        target_type: str | None = None,
        target_id: int | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[ActivityLog]:
        query = self.db.query(ActivityLog).filter(ActivityLog.tenant_id == tenant_id)
        if target_type is not None:
            query = query.filter(ActivityLog.target_type == target_type)
        if target_id is not None:
            query = query.filter(ActivityLog.target_id == target_id)
        capped = max(1, min(limit, MAX_LIMIT))
        return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(capped).all()
