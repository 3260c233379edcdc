"""Notification model module."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.models.base import Base, CreatedAtMixin, TenantScopedMixin
from dealflow.models.enums import NotificationType


class Notification(Base, CreatedAtMixin, TenantScopedMixin):
    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_tenant_user_read", "tenant_id", "user_id", "is_read"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(30), default=NotificationType.INFO.value, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
