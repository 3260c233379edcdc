"""Task and follow-up service."""

from __future__ import annotations

import logging
from typing import Any

from dealflow.core.exceptions import NotFoundError, ValidationError
from dealflow.models import Deal, Lead, Task
from dealflow.models.base import utcnow
from dealflow.models.enums import EventType, TaskKind, TaskStatus
from dealflow.services.base_service import BaseService
from dealflow.services.events import DomainEvent
from dealflow.services.side_effects import SideEffectDispatcher

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"title", "status", "due_date", "priority", "assigned_to_id", "summary", "intent"}
_REQUIRED_FIELDS = ("title", "status", "priority")
_VALID_STATUSES = {status.value for status in TaskStatus}


class TaskService(BaseService):
    """Service for tasks and lead follow-ups. Rows are never hard-deleted."""

    def get_task(self, tenant_id: int, task_id: int, kind: str | None = None) -> Task:
        query = self.db.query(Task).filter(
            Task.id == task_id, Task.tenant_id == tenant_id, Task.deleted_at.is_(None)
        )
        if kind is not None:
            query = query.filter(Task.kind == kind)
        task = query.first()
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    def list_tasks(self, tenant_id: int, assigned_to_id: int | None = None) -> list[Task]:
        query = self.db.query(Task).filter(
            Task.tenant_id == tenant_id,
            Task.kind == TaskKind.TASK.value,
            Task.deleted_at.is_(None),
        )
        if assigned_to_id is not None:
            query = query.filter(Task.assigned_to_id == assigned_to_id)
        return query.order_by(Task.due_date.asc(), Task.id.asc()).all()

    def list_follow_ups(self, tenant_id: int, lead_id: int | None = None) -> list[Task]:
        query = self.db.query(Task).filter(
            Task.tenant_id == tenant_id,
            Task.kind == TaskKind.FOLLOW_UP.value,
            Task.deleted_at.is_(None),
        )
        if lead_id is not None:
            query = query.filter(Task.related_lead_id == lead_id)
        return query.order_by(Task.priority.desc(), Task.due_date.asc(), Task.id.asc()).all()

    def create_task(self, tenant_id: int, data: dict[str, Any], actor_id: int | None = None) -> Task:
        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationError("Title is required")
        self._check_links(tenant_id, data.get("related_lead_id"), data.get("related_deal_id"))
        self._check_assignee(tenant_id, data.get("assigned_to_id"))

        task = Task(
            tenant_id=tenant_id,
            kind=TaskKind.TASK.value,
            title=title,
            due_date=data.get("due_date"),
            status=self._status(data.get("status")),
            priority=data.get("priority") if data.get("priority") is not None else 50,
            intent=data.get("intent") or "Manual task",
            summary=data.get("summary"),
            assigned_to_id=data.get("assigned_to_id") if data.get("assigned_to_id") is not None else actor_id,
            related_lead_id=data.get("related_lead_id"),
            related_deal_id=data.get("related_deal_id"),
        )
        self.db.add(task)
        self.commit()
        self.db.refresh(task)
        logger.info("task.created", extra={"event": "task.created", "tenant_id": tenant_id, "task_id": task.id})
        return task

    def create_follow_up(self, tenant_id: int, data: dict[str, Any], actor_id: int | None = None) -> Task:
        title = (data.get("title") or "").strip()
        lead_id = data.get("related_lead_id")
        if not title or lead_id is None:
            raise ValidationError("Title and lead id are required")
        self._check_links(tenant_id, lead_id, data.get("related_deal_id"))
        self._check_assignee(tenant_id, data.get("assigned_to_id"))

        follow_up = Task(
            tenant_id=tenant_id,
            kind=TaskKind.FOLLOW_UP.value,
            title=title,
            due_date=data.get("due_date"),
            status=self._status(data.get("status")),
            priority=data.get("priority") if data.get("priority") is not None else 50,
            summary=data.get("summary"),
            action_type=data.get("action_type") or "Call",
            suggested_message=data.get("suggested_message"),
            best_contact_time=data.get("best_contact_time"),
            assigned_to_id=data.get("assigned_to_id") if data.get("assigned_to_id") is not None else actor_id,
            related_lead_id=lead_id,
            related_deal_id=data.get("related_deal_id"),
        )
        self.db.add(follow_up)
        self.commit()
        self.db.refresh(follow_up)
        logger.info(
            "follow_up.created",
            extra={"event": "follow_up.created", "tenant_id": tenant_id, "task_id": follow_up.id, "lead_id": lead_id},
        )
        return follow_up

    def update_task(self, tenant_id: int, task_id: int, changes: dict[str, Any]) -> Task:
        task = self.get_task(tenant_id, task_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if not changes:
            raise ValidationError("Nothing to update")
        self.reject_nulls(changes, _REQUIRED_FIELDS)
        self._check_assignee(tenant_id, changes.get("assigned_to_id"))
        if changes.get("status") == TaskStatus.COMPLETED.value:
            raise ValidationError("Use the complete endpoint to finish a task.")
        if "status" in changes:
            changes = {**changes, "status": self._status(changes["status"])}

        for key, value in changes.items():
            setattr(task, key, value)
        self.commit()
        self.db.refresh(task)
        return task

    def complete_task(self, tenant_id: int, task_id: int, actor_id: int | None = None) -> Task:
        """Mark a task done. Completing an already completed task is a no-op."""
        task = self.get_task(tenant_id, task_id)
        if task.completed:
            return task

        previous_status = task.status
        task.completed = True
        task.completed_at = utcnow()
        task.status = TaskStatus.COMPLETED.value
        event = DomainEvent(
            event_type=EventType.TASK_COMPLETED,
            tenant_id=tenant_id,
            target_type="task",
            target_id=task.id,
            target_name=task.title,
            actor_id=actor_id,
            actor_name=self.actor_name(tenant_id, actor_id),
            recipient_ids=(task.assigned_to_id,) if task.assigned_to_id is not None else (),
            payload={
                "previous_status": previous_status,
                "status": task.status,
                "kind": task.kind,
                "lead_id": task.related_lead_id,
                "deal_id": task.related_deal_id,
                "owner_id": task.assigned_to_id,
            },
        )
        try:
            SideEffectDispatcher(self.db).dispatch(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(task)
        logger.info("task.completed", extra={"event": "task.completed", "tenant_id": tenant_id, "task_id": task.id})
        return task

    def _status(self, status: str | None) -> str:
        if status is None:
            return TaskStatus.UPCOMING.value
        if status not in _VALID_STATUSES:
            raise ValidationError(f"Invalid task status '{status}'. Allowed: {', '.join(sorted(_VALID_STATUSES))}")
        return status

    def _check_assignee(self, tenant_id: int, user_id: int | None) -> None:
        if user_id is not None:
            self.require_user(tenant_id, user_id)

    def _check_links(self, tenant_id: int, lead_id: int | None, deal_id: int | None) -> None:
        if lead_id is not None:
            exists = (
                self.db.query(Lead.id)
                .filter(Lead.id == lead_id, Lead.tenant_id == tenant_id, Lead.deleted_at.is_(None))
                .first()
            )
            if exists is None:
                raise ValidationError(f"Unknown lead: {lead_id}")
        if deal_id is not None:
            exists = (
                self.db.query(Deal.id)
                .filter(Deal.id == deal_id, Deal.tenant_id == tenant_id, Deal.deleted_at.is_(None))
                .first()
            )
            if exists is None:
                raise ValidationError(f"Unknown deal: {deal_id}")
