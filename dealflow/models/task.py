"""Task and follow-up model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.models.base import AuditMixin, Base, TenantScopedMixin
from dealflow.models.enums import TaskKind, TaskStatus


class Task(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_tenant_kind_due", "tenant_id", "kind", "due_date"),
        Index("idx_tasks_tenant_assignee", "tenant_id", "assigned_to_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), default=TaskKind.TASK.value, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(30), default=TaskStatus.UPCOMING.value, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    intent: Mapped[str | None] = mapped_column(String(255))
    summary: Mapped[str | None] = mapped_column(Text)
    assigned_to_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    related_lead_id: Mapped[int | None] = mapped_column(ForeignKey("leads.id", ondelete="SET NULL"))
    related_deal_id: Mapped[int | None] = mapped_column(ForeignKey("deals.id", ondelete="SET NULL"))
    suggested_message: Mapped[str | None] = mapped_column(Text)
    best_contact_time: Mapped[str | None] = mapped_column(String(100))
    action_type: Mapped[str | None] = mapped_column(String(50))
