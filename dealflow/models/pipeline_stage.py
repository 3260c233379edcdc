"""Pipeline stage model module."""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.models.base import AuditMixin, Base, TenantScopedMixin
from dealflow.models.enums import StageOutcome


class PipelineStage(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "pipeline_stages"
    __table_args__ = (
        UniqueConstraint("tenant_id", "label", name="uq_pipeline_stages_tenant_label"),
        Index("idx_pipeline_stages_tenant_position", "tenant_id", "position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String(20), default="#64748b", nullable=False)
    probability: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    outcome: Mapped[str] = mapped_column(String(10), default=StageOutcome.OPEN.value, nullable=False)

    @property
    def is_closed(self) -> bool:
        return self.outcome != StageOutcome.OPEN.value
