"""Shared service base with explicit session lifecycle behavior."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy.orm import Session

from dealflow.core.exceptions import ValidationError
from dealflow.models import User


class BaseService:
    """Base class for services that operate on an injected SQLAlchemy session.

    Services never open sessions themselves; the caller (a request dependency,
    a worker task or a test fixture) owns the session and its lifetime.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def require_user(self, tenant_id: int, user_id: int) -> User:
        """Return the active user `user_id` of `tenant_id`, or raise `ValidationError`."""
        user = (
            self.db.query(User)
            .filter(
                User.id == user_id,
                User.tenant_id == tenant_id,
                User.is_active.is_(True),
                User.deleted_at.is_(None),
            )
            .first()
        )
        if user is None:
            raise ValidationError(f"Unknown user: {user_id}")
        return user

    def reject_nulls(self, changes: dict[str, Any], fields: Iterable[str]) -> None:
        """Raise `ValidationError` when `changes` clears a required column."""
        cleared = sorted(key for key in fields if key in changes and changes[key] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")

    def actor_name(self, tenant_id: int, actor_id: int | None) -> str:
        """Display name recorded on audit rows for `actor_id`."""
        if actor_id is None:
            return "System"
        user = self.db.get(User, actor_id)
        if user is None or user.tenant_id != tenant_id:
            return f"user:{actor_id}"
        return user.full_name

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
