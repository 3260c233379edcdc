"""Workflow automation engine driven by outbox events."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from dealflow.core.exceptions import ServiceError
from dealflow.models import Notification, Task, User, Workflow, WorkflowLog
from dealflow.models.base import utcnow
from dealflow.models.enums import NotificationType, TaskKind, TaskStatus, WorkflowActionType
from dealflow.services.email_sender import EmailSender

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "Success"
STATUS_FAILED = "Failed"

_BROADCAST_KEYWORDS = ("all users", "everyone")


@dataclass(frozen=True)
class WorkflowEntity:
    """The record an event is about, as seen by workflow actions."""

    tenant_id: int
    entity_type: str
    entity_id: int
    name: str
    email: str | None
    owner_id: int | None
    lead_id: int | None
    deal_id: int | None

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "WorkflowEntity":
        payload = message.get("payload") or {}
        entity_type = message["target_type"]
        entity_id = int(message["target_id"])
        return cls(
            tenant_id=int(message["tenant_id"]),
            entity_type=entity_type,
            entity_id=entity_id,
            name=message.get("target_name") or f"{entity_type} #{entity_id}",
            email=payload.get("email"),
            owner_id=payload.get("owner_id"),
            lead_id=entity_id if entity_type == "lead" else payload.get("lead_id"),
            deal_id=entity_id if entity_type == "deal" else payload.get("deal_id"),
        )


def parse_action(action: dict[str, Any]) -> dict[str, Any] | None:
    """Resolve an action definition to a command.

    An explicit `type` wins. Otherwise the type is inferred from keywords in
    the summary. Returns None when nothing matches.
    """
    description = action.get("summary") or action.get("description") or ""
    action_type = action.get("type")
    if action_type not in {item.value for item in WorkflowActionType}:
        lower = description.lower()
        if "email" in lower or "mail" in lower:
            action_type = WorkflowActionType.SEND_EMAIL.value
        elif "notification" in lower or "notify" in lower:
            action_type = WorkflowActionType.SEND_NOTIFICATION.value
        elif "task" in lower:
            action_type = WorkflowActionType.CREATE_TASK.value
        else:
            return None
        return {**action, "type": action_type, "summary": description, "inferred": True}
    return {**action, "type": action_type, "summary": description, "inferred": False}


class WorkflowEngine:
    """Run a tenant's active workflows for an event.

    Each workflow run is recorded in `workflow_logs`. A run that already
    succeeded for the same outbox event is skipped, so replays are harmless.
    """

    def __init__(self, db: Session, email_sender: EmailSender | None = None) -> None:
        self.db = db
        self.email_sender = email_sender or EmailSender()

    def handle(self, message: dict[str, Any], outbox_event_id: int | None = None) -> list[WorkflowLog]:
        entity = WorkflowEntity.from_message(message)
        workflows = (
            self.db.query(Workflow)
            .filter(
                Workflow.tenant_id == entity.tenant_id,
                Workflow.trigger_type == message["event_type"],
                Workflow.is_active.is_(True),
                Workflow.deleted_at.is_(None),
            )
            .order_by(Workflow.id.asc())
            .all()
        )
        logs = []
        for workflow in workflows:
            if outbox_event_id is not None and self._already_ran(workflow.id, outbox_event_id):
                continue
            logs.append(self.execute(workflow, entity, outbox_event_id))
        return logs

    def _already_ran(self, workflow_id: int, outbox_event_id: int) -> bool:
        return (
            self.db.query(WorkflowLog.id)
            .filter(
                WorkflowLog.workflow_id == workflow_id,
                WorkflowLog.outbox_event_id == outbox_event_id,
                WorkflowLog.status == STATUS_SUCCESS,
            )
            .first()
            is not None
        )

    def execute(self, workflow: Workflow, entity: WorkflowEntity, outbox_event_id: int | None = None) -> WorkflowLog:
        workflow_id = workflow.id
        workflow_name = workflow.name
        started = time.monotonic()
        executed: list[str] = []
        try:
            for action in workflow.actions or []:
                command = parse_action(action if isinstance(action, dict) else {"summary": str(action)})
                if command is None:
                    logger.warning(
                        "workflow.action_skipped",
                        extra={"event": "workflow.action_skipped", "workflow_id": workflow_id, "action": action},
                    )
                    continue
                executed.append(self._run_command(command, entity, workflow_name))
        except Exception as exc:
            self.db.rollback()
            self._write_log(
                entity, workflow_id, outbox_event_id, STATUS_FAILED, executed, started, error=str(exc)
            )
            logger.error(
                "workflow.failed",
                extra={
                    "event": "workflow.failed",
                    "workflow_id": workflow_id,
                    "tenant_id": entity.tenant_id,
                    "entity_id": entity.entity_id,
                    "error": str(exc),
                },
            )
            raise

        log = self._write_log(entity, workflow_id, outbox_event_id, STATUS_SUCCESS, executed, started)
        logger.info(
            "workflow.executed",
            extra={
                "event": "workflow.executed",
                "workflow_id": workflow_id,
                "tenant_id": entity.tenant_id,
                "entity_id": entity.entity_id,
                "actions": executed,
            },
        )
        return log

    def _write_log(
        self,
        entity: WorkflowEntity,
        workflow_id: int,
        outbox_event_id: int | None,
        status: str,
        executed: list[str],
        started: float,
        error: str | None = None,
    ) -> WorkflowLog:
        log = WorkflowLog(
            tenant_id=entity.tenant_id,
            workflow_id=workflow_id,
            outbox_event_id=outbox_event_id,
            entity_id=entity.entity_id,
            status=status,
            actions_executed=list(executed),
            duration_ms=int((time.monotonic() - started) * 1000),
            error_message=error,
        )
        self.db.add(log)
        self.db.commit()
        return log

    def _run_command(self, command: dict[str, Any], entity: WorkflowEntity, workflow_name: str) -> str:
        action_type = command["type"]
        if action_type == WorkflowActionType.CREATE_TASK.value:
            return self._create_task(command, entity)
        if action_type == WorkflowActionType.SEND_NOTIFICATION.value:
            return self._send_notification(command, entity, workflow_name)
        return self._send_email(command, entity, workflow_name)

    def _create_task(self, command: dict[str, Any], entity: WorkflowEntity) -> str:
        if command["inferred"]:
            title = f"Follow up with {entity.name}"
        else:
            title = command.get("title") or command["summary"] or f"Follow up with {entity.name}"
        self.db.add(
            Task(
                tenant_id=entity.tenant_id,
                kind=TaskKind.TASK.value,
                title=title,
                due_date=utcnow() + timedelta(days=int(command.get("due_in_days", 1))),
                status=TaskStatus.UPCOMING.value,
                priority=int(command.get("priority", 50)),
                intent="Workflow automation",
                assigned_to_id=entity.owner_id,
                related_lead_id=entity.lead_id,
                related_deal_id=entity.deal_id,
            )
        )
        return WorkflowActionType.CREATE_TASK.value

    def _send_notification(self, command: dict[str, Any], entity: WorkflowEntity, workflow_name: str) -> str:
        summary = command["summary"] or f"Workflow '{workflow_name}' ran for {entity.name}"
        broadcast = bool(command.get("broadcast")) or command.get("user_id") == "all"
        broadcast = broadcast or any(keyword in summary.lower() for keyword in _BROADCAST_KEYWORDS)

        query = self.db.query(User.id).filter(
            User.tenant_id == entity.tenant_id, User.is_active.is_(True), User.deleted_at.is_(None)
        )
        if not broadcast:
            target = command.get("user_id") or entity.owner_id
            if target is None:
                return f"{WorkflowActionType.SEND_NOTIFICATION.value}:skipped"
            query = query.filter(User.id == int(target))
        recipients = [row.id for row in query.order_by(User.id.asc()).all()]

        if not recipients:
            return f"{WorkflowActionType.SEND_NOTIFICATION.value}:skipped"
        for user_id in recipients:
            self.db.add(
                Notification(
                    tenant_id=entity.tenant_id,
                    user_id=user_id,
                    type=NotificationType.INFO.value,
                    title=command.get("title") or "New Notification",
                    description=summary,
                )
            )
        return WorkflowActionType.SEND_NOTIFICATION.value

    def _send_email(self, command: dict[str, Any], entity: WorkflowEntity, workflow_name: str) -> str:
        recipient = command.get("to") or entity.email
        if not recipient or not self.email_sender.is_configured:
            return f"{WorkflowActionType.SEND_EMAIL.value}:skipped"
        subject = command.get("subject") or f"{workflow_name}: {entity.name}"
        body = command.get("body") or command["summary"] or subject
        if not self.email_sender.send_email(recipient, subject, body):
            raise ServiceError(f"Email delivery to {recipient} failed.")
        return WorkflowActionType.SEND_EMAIL.value
