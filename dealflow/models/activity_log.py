"""Activity log model module."""

from __future__ import annotations

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.models.base import Base, CreatedAtMixin, TenantScopedMixin


class ActivityLog(Base, CreatedAtMixin, TenantScopedMixin):
    """Append-only audit trail entry."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("idx_activity_logs_tenant_target", "tenant_id", "target_type", "target_id"),
        Index("idx_activity_logs_tenant_created", "tenant_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    actor_name: Mapped[str] = mapped_column(String(255), default="System", nullable=False)
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(50), default="app", nullable=False)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_name: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[dict | None] = mapped_column(JSON)
