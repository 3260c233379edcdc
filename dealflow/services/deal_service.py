"""Deal service: CRUD and pipeline stage transitions."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from dealflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from dealflow.models import Deal, Lead, PipelineStage, User
from dealflow.models.base import utcnow
from dealflow.models.enums import EventType, StageOutcome, UserRole
from dealflow.services.base_service import BaseService
from dealflow.services.events import DomainEvent
from dealflow.services.side_effects import SideEffectDispatcher
from dealflow.services.stage_service import PipelineStageService

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"name", "value", "probability", "close_date", "owner_id"}
_REQUIRED_FIELDS = ("name", "value", "probability")


class DealService(BaseService):
    """Service for deal CRUD and stage transitions."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.stages = PipelineStageService(db)
        self.dispatcher = SideEffectDispatcher(db)

    def find_deal(self, tenant_id: int, deal_id: int) -> Deal | None:
        return (
            self.db.query(Deal)
            .filter(Deal.id == deal_id, Deal.tenant_id == tenant_id, Deal.deleted_at.is_(None))
            .first()
        )

    def get_deal(self, tenant_id: int, deal_id: int) -> Deal:
        deal = self.find_deal(tenant_id, deal_id)
        if deal is None:
            raise NotFoundError(f"Deal not found: {deal_id}")
        return deal

    def list_deals(self, tenant_id: int, owner_id: int | None = None, stage: str | None = None) -> list[Deal]:
        query = self.db.query(Deal).filter(Deal.tenant_id == tenant_id, Deal.deleted_at.is_(None))
        if owner_id is not None:
            query = query.filter(Deal.owner_id == owner_id)
        if stage is not None:
            query = query.filter(Deal.stage == stage)
        return query.order_by(Deal.created_at.desc(), Deal.id.desc()).all()

    def create_deal(
        self,
        tenant_id: int,
        name: str,
        lead_id: int,
        actor_id: int | None = None,
        value: float = 0,
        stage: str | None = None,
        probability: int | None = None,
        close_date: date | None = None,
        owner_id: int | None = None,
    ) -> Deal:
        lead = (
            self.db.query(Lead)
            .filter(Lead.id == lead_id, Lead.tenant_id == tenant_id, Lead.deleted_at.is_(None))
            .first()
        )
        if lead is None:
            raise ValidationError(f"Unknown lead: {lead_id}")
        if owner_id is not None:
            self.require_user(tenant_id, owner_id)

        target = self.stages.require_stage(tenant_id, stage) if stage else self.stages.first_stage(tenant_id)
        resolved_owner = owner_id if owner_id is not None else actor_id
        deal = Deal(
            tenant_id=tenant_id,
            name=name,
            lead_id=lead.id,
            value=value,
            stage=target.label,
            probability=probability if probability is not None else target.probability,
            close_date=close_date,
            owner_id=resolved_owner,
        )
        self.db.add(deal)
        self.db.flush()

        event = DomainEvent(
            event_type=EventType.DEAL_CREATED,
            tenant_id=tenant_id,
            target_type="deal",
            target_id=deal.id,
            target_name=deal.name,
            actor_id=actor_id,
            actor_name=self.actor_name(tenant_id, actor_id),
            recipient_ids=(resolved_owner,) if resolved_owner is not None else (),
            payload={
                "stage": deal.stage,
                "value": deal.value,
                "lead_id": lead.id,
                "owner_id": resolved_owner,
                "email": lead.email,
            },
        )
        try:
            self.dispatcher.dispatch(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(deal)
        logger.info(
            "deal.created",
            extra={"event": "deal.created", "tenant_id": tenant_id, "deal_id": deal.id, "stage": deal.stage},
        )
        return deal

    def update_deal(self, tenant_id: int, deal_id: int, changes: dict[str, Any]) -> Deal:
        """Update deal details. Stage moves go through `transition_stage`."""
        deal = self.get_deal(tenant_id, deal_id)
        if "stage" in changes:
            raise ValidationError("Use the stage endpoint to move a deal between stages.")
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        self.reject_nulls(changes, _REQUIRED_FIELDS)
        if changes.get("owner_id") is not None:
            self.require_user(tenant_id, changes["owner_id"])

        for key, value in changes.items():
            setattr(deal, key, value)
        self._commit_versioned(deal)
        return deal

    def delete_deal(self, tenant_id: int, deal_id: int) -> None:
        deal = self.get_deal(tenant_id, deal_id)
        deal.deleted_at = utcnow()
        self._commit_versioned(deal)
        logger.info("deal.deleted", extra={"event": "deal.deleted", "tenant_id": tenant_id, "deal_id": deal_id})

    def transition_stage(
        self,
        tenant_id: int,
        deal_id: int,
        stage: str,
        actor_id: int | None = None,
        probability: int | None = None,
        expected_version: int | None = None,
        reason: str | None = None,
    ) -> Deal:
        """Move a deal to `stage` and record the change.

        The deal row update, its activity log entry, the notifications and the
        outbox event are written in a single transaction. Re-sending the
        current stage is a no-op.
        """
        deal = self.get_deal(tenant_id, deal_id)
        target = self.stages.require_stage(tenant_id, stage)

        if expected_version is not None and expected_version != deal.version:
            raise ConflictError(
                f"Deal {deal_id} was modified concurrently (expected version {expected_version}, found {deal.version})."
            )

        new_probability = probability if probability is not None else target.probability
        stage_changed = deal.stage != target.label
        if not stage_changed and (probability is None or probability == deal.probability):
            return deal

        previous_stage = deal.stage
        event = None
        if stage_changed:
            event = DomainEvent(
                event_type=EventType.DEAL_STAGE_CHANGED,
                tenant_id=tenant_id,
                target_type="deal",
                target_id=deal.id,
                target_name=deal.name,
                actor_id=actor_id,
                actor_name=self.actor_name(tenant_id, actor_id),
                recipient_ids=self._stage_change_recipients(deal, target),
                payload={
                    "from_stage": previous_stage,
                    "to_stage": target.label,
                    "probability": new_probability,
                    "outcome": target.outcome,
                    "reason": reason,
                    "value": deal.value,
                    "lead_id": deal.lead_id,
                    "owner_id": deal.owner_id,
                },
            )

        try:
            deal.stage = target.label
            deal.probability = new_probability
            if target.is_closed and stage_changed:
                deal.close_date = date.today()
            if event is not None:
                self.dispatcher.dispatch(event)
        except Exception:
            self.db.rollback()
            raise
        self._commit_versioned(deal)
        logger.info(
            "deal.stage_transitioned",
            extra={
                "event": "deal.stage_transitioned",
                "tenant_id": tenant_id,
                "deal_id": deal.id,
                "from_stage": previous_stage,
                "to_stage": target.label,
                "version": deal.version,
            },
        )
        return deal

    def _stage_change_recipients(self, deal: Deal, target: PipelineStage) -> tuple[int, ...]:
        recipients: list[int] = []
        if deal.owner_id is not None:
            recipients.append(deal.owner_id)
        if target.outcome == StageOutcome.WON.value:
            managers = (
                self.db.query(User.id)
                .filter(
                    User.tenant_id == deal.tenant_id,
                    User.is_active.is_(True),
                    User.role.in_([UserRole.ADMIN.value, UserRole.MANAGER.value]),
                )
                .order_by(User.id.asc())
                .all()
            )
            recipients.extend(row.id for row in managers)
        return tuple(recipients)

    def _commit_versioned(self, deal: Deal) -> None:
        deal_id = deal.id
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConflictError(f"Deal {deal_id} was modified concurrently; reload and retry.") from exc
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(deal)
