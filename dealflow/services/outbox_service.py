"""Transactional outbox: due-event fetch, delivery bookkeeping and drain loop."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy.orm import Session

from dealflow.core.config import get_config
from dealflow.models import OutboxEvent
from dealflow.models.base import utcnow
from dealflow.models.enums import OutboxStatus
from dealflow.services.base_service import BaseService

logger = logging.getLogger(__name__)

EventHandler = Callable[[Session, dict[str, Any], int], None]
_CLAIMABLE = (OutboxStatus.PENDING.value, OutboxStatus.PROCESSING.value)


class HandlerLookup(Protocol):
    def handlers_for(self, event_type: str) -> Iterable[EventHandler]: ...


def backoff_delay(attempts: int, base_seconds: float) -> timedelta:
    """Delay before the next attempt: base * 2^(attempts-1)."""
    return timedelta(seconds=base_seconds * (2 ** max(attempts - 1, 0)))


class OutboxService(BaseService):
    """Outbox bookkeeping.

    Workers claim one event at a time by moving it to `processing` with a
    lease in `available_at`. An event whose lease expires without being
    delivered or failed becomes claimable again.
    """

    def __init__(
        self,
        db: Session,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        lease_seconds: float | None = None,
    ) -> None:
        super().__init__(db)
        cfg = get_config()
        self.max_attempts = max_attempts if max_attempts is not None else cfg.OUTBOX_MAX_ATTEMPTS
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else cfg.OUTBOX_BACKOFF_SECONDS
        self.lease_seconds = lease_seconds if lease_seconds is not None else cfg.OUTBOX_LEASE_SECONDS

    def fetch_due(self, limit: int, now: datetime | None = None) -> list[OutboxEvent]:
        """Claimable events whose `available_at` has passed, oldest first."""
        now = now or utcnow()
        return (
            self.db.query(OutboxEvent)
            .filter(OutboxEvent.status.in_(_CLAIMABLE), OutboxEvent.available_at <= now)
            .order_by(OutboxEvent.id.asc())
            .limit(limit)
            .all()
        )

    def claim(self, event: OutboxEvent, now: datetime | None = None) -> bool:
        """Take the lease on `event` in its own transaction.

        The conditional update only matches while the event is still due, so
        of two workers racing for the same row exactly one gets `True`.
        """
        now = now or utcnow()
        claimed = (
            self.db.query(OutboxEvent)
            .filter(
                OutboxEvent.id == event.id,
                OutboxEvent.status.in_(_CLAIMABLE),
                OutboxEvent.available_at <= now,
            )
            .update(
                {
                    OutboxEvent.status: OutboxStatus.PROCESSING.value,
                    OutboxEvent.available_at: now + timedelta(seconds=self.lease_seconds),
                },
                synchronize_session=False,
            )
        )
        self.commit()
        self.db.refresh(event)
        return claimed == 1

    def mark_delivered(self, event: OutboxEvent) -> None:
        event.status = OutboxStatus.DELIVERED.value
        event.delivered_at = utcnow()
        event.last_error = None
        self.commit()

    def mark_failed(self, event: OutboxEvent, error: str, now: datetime | None = None) -> None:
        """Record a failed attempt; the event goes dead once attempts reach the maximum."""
        now = now or utcnow()
        event.attempts = (event.attempts or 0) + 1
        event.last_error = error[:2000]
        if event.attempts >= self.max_attempts:
            event.status = OutboxStatus.DEAD.value
        else:
            event.status = OutboxStatus.PENDING.value
            event.available_at = now + backoff_delay(event.attempts, self.backoff_seconds)
        self.commit()


def drain_outbox(session: Session, registry: HandlerLookup, limit: int | None = None) -> dict[str, int]:
    """Deliver due outbox events to their registered handlers.

    Delivery is at least once: an event whose handler fails is retried later,
    so handlers must tolerate replays. Events without handlers are marked
    delivered. Events claimed by another worker in the meantime are skipped.
    """
    outbox = OutboxService(session)
    batch = limit if limit is not None else get_config().OUTBOX_BATCH_SIZE
    stats = {"delivered": 0, "failed": 0, "dead": 0}

    for event in outbox.fetch_due(batch):
        event_id = event.id
        event_type = event.event_type
        if not outbox.claim(event):
            logger.debug(
                "outbox.claim_lost",
                extra={"event": "outbox.claim_lost", "outbox_event_id": event_id, "event_type": event_type},
            )
            continue
        message = dict(event.payload or {})
        try:
            for handler in registry.handlers_for(event_type):
                handler(session, message, event_id)
        except Exception as exc:
            session.rollback()
            failed = session.get(OutboxEvent, event_id)
            outbox.mark_failed(failed, f"{exc.__class__.__name__}: {exc}")
            if failed.status == OutboxStatus.DEAD.value:
                stats["dead"] += 1
            else:
                stats["failed"] += 1
            logger.error(
                "outbox.delivery_failed",
                extra={
                    "event": "outbox.delivery_failed",
                    "outbox_event_id": event_id,
                    "event_type": event_type,
                    "attempts": failed.attempts,
                    "status": failed.status,
                    "error": str(exc),
                },
            )
            continue

        outbox.mark_delivered(session.get(OutboxEvent, event_id))
        stats["delivered"] += 1

    if any(stats.values()):
        logger.info("outbox.drained", extra={"event": "outbox.drained", **stats})
    return stats
