"""Celery tasks delivering transactional outbox events."""

from __future__ import annotations

import logging
from typing import Any

from dealflow.database.db import get_db_session
from dealflow.services.outbox_service import drain_outbox
from dealflow.tasks.celery_app import celery_app
from dealflow.tasks.hooks import after_task, before_task
from dealflow.tasks.registry import default_registry

logger = logging.getLogger(__name__)

TASK_KEY = "outbox.drain"


def run_drain(limit: int | None = None) -> dict[str, Any]:
    """Drain one batch with a worker-owned session."""
    with get_db_session() as session:
        return drain_outbox(session, default_registry, limit=limit)


@celery_app.task(bind=True, name=TASK_KEY)
def drain_outbox_task(self, limit: int | None = None) -> dict[str, Any]:
    context = {"task_id": getattr(self.request, "id", None)}
    logger.info("task.start", extra=before_task(TASK_KEY, context))
    try:
        stats = run_drain(limit=limit)
    except Exception:
        logger.exception("task.failed", extra=after_task(TASK_KEY, context, status="failed"))
        raise
    logger.info("task.finish", extra=after_task(TASK_KEY, context, status="succeeded", **stats))
    return {"status": "ok", **stats}
