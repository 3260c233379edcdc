"""Structured logging helpers shared by request and worker code."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    tenant_id: int | None = None
    user_id: int | None = None
    event_id: int | None = None
    event_type: str | None = None
    request_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "tenant_id": context.tenant_id,
        "user_id": context.user_id,
        "event_id": context.event_id,
        "event_type": context.event_type,
        "request_id": context.request_id,
    }
    payload.update(fields)
    return payload
