"""Domain events emitted by write paths and consumed by the side-effect dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dealflow.models.enums import EventType


@dataclass(frozen=True)
class DomainEvent:
    event_type: EventType
    tenant_id: int
    target_type: str
    target_id: int
    target_name: str | None = None
    actor_id: int | None = None
    actor_name: str = "System"
    recipient_ids: tuple[int, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        """Serializable form stored on the outbox row."""
        return {
            "event_type": self.event_type.value,
            "tenant_id": self.tenant_id,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "target_name": self.target_name,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "payload": dict(self.payload),
        }
