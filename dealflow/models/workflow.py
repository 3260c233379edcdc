"""Workflow automation model module."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.models.base import AuditMixin, Base, CreatedAtMixin, TenantScopedMixin


class Workflow(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "workflows"
    __table_args__ = (Index("idx_workflows_tenant_trigger", "tenant_id", "trigger_type", "is_active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    trigger_type: Mapped[str] = mapped_column(String(60), nullable=False)
    actions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class WorkflowLog(Base, CreatedAtMixin, TenantScopedMixin):
    __tablename__ = "workflow_logs"
    __table_args__ = (Index("idx_workflow_logs_tenant_workflow", "tenant_id", "workflow_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workflow_id: Mapped[int] = mapped_column(ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    outbox_event_id: Mapped[int | None] = mapped_column(Integer)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    actions_executed: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text)
