"""Workflow rule management."""

from __future__ import annotations

import logging
from typing import Any

from dealflow.core.exceptions import NotFoundError, ValidationError
from dealflow.models import Workflow, WorkflowLog
from dealflow.models.enums import EventType, WorkflowActionType
from dealflow.services.base_service import BaseService

logger = logging.getLogger(__name__)

TRIGGER_TYPES = {item.value for item in EventType}
_ACTION_TYPES = {item.value for item in WorkflowActionType}
_UPDATABLE_FIELDS = {"name", "trigger_type", "actions", "is_active"}
_REQUIRED_FIELDS = ("name", "trigger_type", "actions", "is_active")


def validate_actions(actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not actions:
        raise ValidationError("A workflow needs at least one action.")
    for index, action in enumerate(actions):
        action_type = action.get("type")
        if action_type is not None and action_type not in _ACTION_TYPES:
            raise ValidationError(f"Action {index}: unknown type '{action_type}'.")
        if action_type is None and not (action.get("summary") or action.get("description")):
            raise ValidationError(f"Action {index}: needs a type or a summary.")
    return actions


def validate_trigger(trigger_type: str) -> str:
    if trigger_type not in TRIGGER_TYPES:
        raise ValidationError(
            f"Unknown trigger type '{trigger_type}'. Allowed: {', '.join(sorted(TRIGGER_TYPES))}"
        )
    return trigger_type


class WorkflowService(BaseService):
    def list_workflows(self, tenant_id: int) -> list[Workflow]:
        return (
            self.db.query(Workflow)
            .filter(Workflow.tenant_id == tenant_id, Workflow.deleted_at.is_(None))
            .order_by(Workflow.created_at.desc(), Workflow.id.desc())
            .all()
        )

    def get_workflow(self, tenant_id: int, workflow_id: int) -> Workflow:
        workflow = (
            self.db.query(Workflow)
            .filter(Workflow.id == workflow_id, Workflow.tenant_id == tenant_id, Workflow.deleted_at.is_(None))
            .first()
        )
        if workflow is None:
            raise NotFoundError(f"Workflow not found: {workflow_id}")
        return workflow

    def create_workflow(
        self, tenant_id: int, name: str, trigger_type: str, actions: list[dict[str, Any]], is_active: bool = True
    ) -> Workflow:
        workflow = Workflow(
            tenant_id=tenant_id,
            name=name.strip(),
            trigger_type=validate_trigger(trigger_type),
            actions=self._check_recipients(tenant_id, validate_actions(actions)),
            is_active=is_active,
        )
        self.db.add(workflow)
        self.commit()
        self.db.refresh(workflow)
        logger.info(
            "workflow.created",
            extra={"event": "workflow.created", "tenant_id": tenant_id, "workflow_id": workflow.id},
        )
        return workflow

    def update_workflow(self, tenant_id: int, workflow_id: int, changes: dict[str, Any]) -> Workflow:
        workflow = self.get_workflow(tenant_id, workflow_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if not changes:
            raise ValidationError("No changes provided")
        self.reject_nulls(changes, _REQUIRED_FIELDS)
        if "trigger_type" in changes:
            validate_trigger(changes["trigger_type"])
        if "actions" in changes:
            changes = {**changes, "actions": self._check_recipients(tenant_id, validate_actions(changes["actions"]))}

        for key, value in changes.items():
            setattr(workflow, key, value)
        self.commit()
        self.db.refresh(workflow)
        return workflow

    def _check_recipients(self, tenant_id: int, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Explicit notification recipients must be active users of the tenant."""
        for index, action in enumerate(actions):
            user_id = action.get("user_id")
            if user_id is None or user_id == "all":
                continue
            try:
                resolved = int(user_id)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Action {index}: invalid user_id '{user_id}'.") from exc
            self.require_user(tenant_id, resolved)
        return actions

    def list_logs(self, tenant_id: int, workflow_id: int | None = None, limit: int = 100) -> list[WorkflowLog]:
        query = self.db.query(WorkflowLog).filter(WorkflowLog.tenant_id == tenant_id)
        if workflow_id is not None:
            query = query.filter(WorkflowLog.workflow_id == workflow_id)
        return query.order_by(WorkflowLog.created_at.desc(), WorkflowLog.id.desc()).limit(limit).all()
