"""Pipeline stage configuration service."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func

from dealflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from dealflow.models import PipelineStage
from dealflow.models.enums import StageOutcome
from dealflow.services.base_service import BaseService

logger = logging.getLogger(__name__)

# label, probability, outcome, color
DEFAULT_STAGES: list[tuple[str, int, str, str]] = [
    ("Prospecting", 10, StageOutcome.OPEN.value, "#64748b"),
    ("Qualification", 25, StageOutcome.OPEN.value, "#3b82f6"),
    ("Proposal", 50, StageOutcome.OPEN.value, "#8b5cf6"),
    ("Negotiation", 75, StageOutcome.OPEN.value, "#f59e0b"),
    ("Closed - Won", 100, StageOutcome.WON.value, "#22c55e"),
    ("Closed - Lost", 0, StageOutcome.LOST.value, "#ef4444"),
]

_UPDATABLE_FIELDS = {"probability", "color", "position", "outcome"}


class PipelineStageService(BaseService):
    """Service for the per-tenant ordered stage list."""

    def list_stages(self, tenant_id: int) -> list[PipelineStage]:
        return (
            self.db.query(PipelineStage)
            .filter(PipelineStage.tenant_id == tenant_id, PipelineStage.deleted_at.is_(None))
            .order_by(PipelineStage.position.asc(), PipelineStage.id.asc())
            .all()
        )

    def find_stage(self, tenant_id: int, label: str) -> PipelineStage | None:
        return (
            self.db.query(PipelineStage)
            .filter(
                PipelineStage.tenant_id == tenant_id,
                PipelineStage.label == label,
                PipelineStage.deleted_at.is_(None),
            )
            .first()
        )

    def require_stage(self, tenant_id: int, label: str) -> PipelineStage:
        """Return the configured stage or raise ValidationError."""
        stage = self.find_stage(tenant_id, label)
        if stage is None:
            allowed = ", ".join(s.label for s in self.list_stages(tenant_id))
            raise ValidationError(f"Unknown pipeline stage '{label}'. Allowed stages: {allowed}")
        return stage

    def first_stage(self, tenant_id: int) -> PipelineStage:
        stages = self.list_stages(tenant_id)
        if not stages:
            raise ValidationError("No pipeline stages are configured for this tenant.")
        return stages[0]

    def create_stage(
        self,
        tenant_id: int,
        label: str,
        probability: int,
        outcome: str = StageOutcome.OPEN.value,
        color: str = "#64748b",
        position: int | None = None,
    ) -> PipelineStage:
        label = label.strip()
        if not label:
            raise ValidationError("Stage label is required.")
        if self.find_stage(tenant_id, label) is not None:
            raise ConflictError(f"Pipeline stage '{label}' already exists.")

        if position is None:
            current_max = (
                self.db.query(func.max(PipelineStage.position))
                .filter(PipelineStage.tenant_id == tenant_id)
                .scalar()
            )
            position = 0 if current_max is None else current_max + 1

        stage = PipelineStage(
            tenant_id=tenant_id,
            label=label,
            probability=probability,
            outcome=outcome,
            color=color,
            position=position,
        )
        self.db.add(stage)
        self.commit()
        self.db.refresh(stage)
        logger.info(
            "pipeline_stage.created",
            extra={"event": "pipeline_stage.created", "tenant_id": tenant_id, "label": label},
        )
        return stage

    def update_stage(self, tenant_id: int, stage_id: int, changes: dict[str, Any]) -> PipelineStage:
        """Update stage attributes. Labels are immutable because deals reference them."""
        stage = (
            self.db.query(PipelineStage)
            .filter(PipelineStage.id == stage_id, PipelineStage.tenant_id == tenant_id)
            .first()
        )
        if stage is None or stage.deleted_at is not None:
            raise NotFoundError(f"Pipeline stage not found: {stage_id}")

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        for key, value in changes.items():
            if value is not None:
                setattr(stage, key, value)
        self.commit()
        self.db.refresh(stage)
        return stage

    def seed_default_stages(self, tenant_id: int) -> list[PipelineStage]:
        """Create any missing default stages; existing ones are left untouched."""
        existing = {stage.label for stage in self.list_stages(tenant_id)}
        created = 0
        for position, (label, probability, outcome, color) in enumerate(DEFAULT_STAGES):
            if label in existing:
                continue
            self.db.add(
                PipelineStage(
                    tenant_id=tenant_id,
                    label=label,
                    probability=probability,
                    outcome=outcome,
                    color=color,
                    position=position,
                )
            )
            created += 1
        if created:
            self.commit()
            logger.info(
                "pipeline_stage.defaults_seeded",
                extra={"event": "pipeline_stage.defaults_seeded", "tenant_id": tenant_id, "created_count": created},
            )
        return self.list_stages(tenant_id)
