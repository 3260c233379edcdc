"""Side-effect dispatcher: domain events to activity log, notifications and outbox.

Rows are added to the caller's session only; they commit or roll back
together with the primary write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from dealflow.models import ActivityLog, Notification, OutboxEvent
from dealflow.models.enums import EventType, NotificationType, StageOutcome
from dealflow.services.events import DomainEvent

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    activity: ActivityLog
    notifications: list[Notification] = field(default_factory=list)
    outbox: OutboxEvent | None = None


def build_activity_entry(event: DomainEvent) -> dict[str, Any]:
    """Map an event to the column values of its activity log row."""
    payload = event.payload
    name = event.target_name or f"{event.target_type} #{event.target_id}"

    if event.event_type is EventType.DEAL_STAGE_CHANGED:
        action = "Deal Stage Changed"
        summary = f"Moved deal '{name}' from {payload.get('from_stage')} to {payload.get('to_stage')}"
        details = {
            "before": payload.get("from_stage"),
            "after": payload.get("to_stage"),
            "reason": payload.get("reason"),
            "probability": payload.get("probability"),
        }
    elif event.event_type is EventType.DEAL_CREATED:
        action = "Deal Created"
        summary = f"Created deal '{name}' in {payload.get('stage')}"
        details = {"before": None, "after": payload.get("stage"), "value": payload.get("value")}
    elif event.event_type is EventType.LEAD_CREATED:
        action = "Lead Created"
        summary = f"Created lead '{name}' from {payload.get('source') or 'Manual'}"
        details = {"before": None, "after": payload.get("status"), "source": payload.get("source")}
    elif event.event_type is EventType.LEAD_ASSIGNED:
        action = "Lead Assigned"
        summary = f"Assigned lead '{name}' to {payload.get('owner_name') or 'nobody'}"
        details = {"before": payload.get("previous_owner_id"), "after": payload.get("owner_id")}
    elif event.event_type is EventType.LEAD_NOTE_ADDED:
        action = "Note Added"
        summary = payload.get("note") or ""
        details = {"note": payload.get("note")}
    elif event.event_type is EventType.LEAD_DELETED:
        action = "Lead Deleted"
        summary = f"Deleted lead '{name}'"
        details = {"before": payload.get("status"), "after": None}
    elif event.event_type is EventType.TASK_COMPLETED:
        action = "Task Completed"
        summary = f"Completed task '{name}'"
        details = {"before": payload.get("previous_status"), "after": payload.get("status")}
    else:  # pragma: no cover - guarded by the EventType enum.
        raise ValueError(f"Unsupported event type: {event.event_type}")

    return {
        "tenant_id": event.tenant_id,
        "actor_id": event.actor_id,
        "actor_name": event.actor_name,
        "action": action,
        "summary": summary,
        "source": payload.get("source_channel", "app"),
        "target_type": event.target_type,
        "target_id": event.target_id,
        "target_name": event.target_name,
        "details": details,
    }


def _notification_content(event: DomainEvent) -> tuple[str, str, str]:
    payload = event.payload
    name = event.target_name or f"{event.target_type} #{event.target_id}"

    if event.event_type is EventType.DEAL_STAGE_CHANGED:
        outcome = payload.get("outcome")
        to_stage = payload.get("to_stage")
        if outcome == StageOutcome.WON.value:
            return NotificationType.SUCCESS.value, f"Deal won: {name}", f"{event.actor_name} closed '{name}' as {to_stage}."
        if outcome == StageOutcome.LOST.value:
            return NotificationType.WARNING.value, f"Deal lost: {name}", f"{event.actor_name} moved '{name}' to {to_stage}."
        return (
            NotificationType.DEAL.value,
            f"Deal moved to {to_stage}",
            f"{event.actor_name} moved '{name}' from {payload.get('from_stage')} to {to_stage}.",
        )
    if event.event_type is EventType.DEAL_CREATED:
        return NotificationType.DEAL.value, "New deal assigned", f"{event.actor_name} assigned you '{name}'."
    if event.event_type is EventType.LEAD_CREATED:
        company = payload.get("company")
        label = f"{name} ({company})" if company else name
        return NotificationType.LEAD.value, "New lead", f"{label} was added from {payload.get('source') or 'Manual'}."
    if event.event_type is EventType.LEAD_ASSIGNED:
        return NotificationType.LEAD.value, "Lead assigned to you", f"{event.actor_name} assigned you '{name}'."
    if event.event_type is EventType.LEAD_NOTE_ADDED:
        return NotificationType.LEAD.value, f"New note on {name}", f"{event.actor_name} added a note to '{name}'."
    if event.event_type is EventType.LEAD_DELETED:
        return NotificationType.WARNING.value, "Lead deleted", f"{event.actor_name} deleted '{name}'."
    if event.event_type is EventType.TASK_COMPLETED:
        return NotificationType.TASK.value, "Task completed", f"{event.actor_name} completed '{name}'."
    raise ValueError(f"Unsupported event type: {event.event_type}")  # pragma: no cover


def build_notifications(event: DomainEvent) -> list[dict[str, Any]]:
    """Map an event to one notification per distinct recipient, skipping the actor."""
    recipients: list[int] = []
    for user_id in event.recipient_ids:
        if user_id is None or user_id == event.actor_id or user_id in recipients:
            continue
        recipients.append(user_id)
    if not recipients:
        return []

    notification_type, title, description = _notification_content(event)
    return [
        {
            "tenant_id": event.tenant_id,
            "user_id": user_id,
            "type": notification_type,
            "title": title,
            "description": description,
        }
        for user_id in recipients
    ]


class SideEffectDispatcher:
    """Stage activity, notification and outbox rows inside the caller's transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def dispatch(self, event: DomainEvent) -> DispatchResult:
        activity = ActivityLog(**build_activity_entry(event))
        notifications = [Notification(**values) for values in build_notifications(event)]
        outbox = OutboxEvent(
            tenant_id=event.tenant_id,
            event_type=event.event_type.value,
            aggregate_type=event.target_type,
            aggregate_id=event.target_id,
            payload=event.to_message(),
        )

        self.db.add(activity)
        self.db.add_all(notifications)
        self.db.add(outbox)

        logger.info(
            "side_effects.dispatched",
            extra={
                "event": "side_effects.dispatched",
                "event_type": event.event_type.value,
                "tenant_id": event.tenant_id,
                "target_id": event.target_id,
                "notification_count": len(notifications),
            },
        )
        return DispatchResult(activity=activity, notifications=notifications, outbox=outbox)
