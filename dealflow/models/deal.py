"""Deal model module."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealflow.models.base import AuditMixin, Base, TenantScopedMixin


class Deal(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "deals"
    __table_args__ = (
        Index("idx_deals_tenant_stage", "tenant_id", "stage"),
        Index("idx_deals_tenant_owner", "tenant_id", "owner_id"),
        Index("idx_deals_tenant_lead", "tenant_id", "lead_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    probability: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    stage: Mapped[str] = mapped_column(String(100), nullable=False)
    close_date: Mapped[date | None] = mapped_column(Date)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    lead_id: Mapped[int | None] = mapped_column(ForeignKey("leads.id", ondelete="SET NULL"))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lead = relationship("Lead", back_populates="deals")
    owner = relationship("User")

    __mapper_args__ = {"version_id_col": version}
