"""Notification feed service. The read flag is the only mutable field."""

from __future__ import annotations

from dealflow.core.exceptions import NotFoundError
from dealflow.models import Notification
from dealflow.services.base_service import BaseService


class NotificationService(BaseService):
    def list_for_user(self, tenant_id: int, user_id: int, unread_only: bool = False, limit: int = 100) -> list[Notification]:
        query = self.db.query(Notification).filter(
            Notification.tenant_id == tenant_id, Notification.user_id == user_id
        )
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def mark_read(self, tenant_id: int, user_id: int, notification_id: int) -> Notification:
        notification = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.tenant_id == tenant_id,
                Notification.user_id == user_id,
            )
            .first()
        )
        if notification is None:
            raise NotFoundError(f"Notification not found: {notification_id}")
        if not notification.is_read:
            notification.is_read = True
            self.commit()
        return notification

    def mark_all_read(self, tenant_id: int, user_id: int) -> int:
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.tenant_id == tenant_id,
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .update({Notification.is_read: True}, synchronize_session="fetch")
        )
        self.commit()
        return updated
