"""Lead model module."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealflow.models.base import AuditMixin, Base, TenantScopedMixin
from dealflow.models.enums import LeadStatus, LeadTemperature


class Lead(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "leads"
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_leads_tenant_email"),
        Index("idx_leads_tenant_status", "tenant_id", "status"),
        Index("idx_leads_tenant_owner", "tenant_id", "owner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    source: Mapped[str] = mapped_column(String(100), default="Manual", nullable=False)
    status: Mapped[str] = mapped_column(String(30), default=LeadStatus.NEW.value, nullable=False)
    temperature: Mapped[str] = mapped_column(String(10), default=LeadTemperature.COLD.value, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))

    owner = relationship("User")
    deals = relationship("Deal", back_populates="lead")
