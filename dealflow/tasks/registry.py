"""Registry mapping outbox event types to delivery handlers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from dealflow.models.enums import EventType
from dealflow.services.outbox_service import EventHandler
from dealflow.services.workflow_engine import WorkflowEngine


class EventHandlerRegistry:
    """Mutable registry of handlers per event type."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def register(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def handlers_for(self, event_type: str) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def event_types(self) -> list[str]:
        return sorted(self._handlers.keys())


def run_workflows(session: Session, message: dict[str, Any], outbox_event_id: int) -> None:
    WorkflowEngine(session).handle(message, outbox_event_id=outbox_event_id)


def build_default_registry() -> EventHandlerRegistry:
    registry = EventHandlerRegistry()
    for event_type in EventType:
        registry.register(event_type.value, run_workflows)
    return registry


default_registry = build_default_registry()
