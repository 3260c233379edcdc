"""Lead service: CRUD and webhook ingestion with email dedup."""

from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from dealflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from dealflow.models import ActivityLog, Lead, User
from dealflow.models.base import utcnow
from dealflow.models.enums import EventType, LeadStatus, LeadTemperature
from dealflow.services.base_service import BaseService
from dealflow.services.events import DomainEvent
from dealflow.services.side_effects import SideEffectDispatcher

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "Google Sheet"
_UPDATABLE_FIELDS = {"name", "company", "email", "phone", "status", "temperature", "score", "notes", "owner_id", "source"}
_REQUIRED_FIELDS = ("name", "email", "source", "status", "temperature", "score")
_FILTER_FIELDS = ("status", "owner_id", "source", "temperature")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class LeadService(BaseService):
    """Service for lead CRUD and inbound lead capture."""

    def find_by_email(self, tenant_id: int, email: str) -> Lead | None:
        return (
            self.db.query(Lead)
            .filter(Lead.tenant_id == tenant_id, Lead.email == normalize_email(email))
            .first()
        )

    def get_lead(self, tenant_id: int, lead_id: int) -> Lead:
        lead = (
            self.db.query(Lead)
            .filter(Lead.id == lead_id, Lead.tenant_id == tenant_id, Lead.deleted_at.is_(None))
            .first()
        )
        if lead is None:
            raise NotFoundError(f"Lead not found: {lead_id}")
        return lead

    def list_leads(
        self,
        tenant_id: int,
        filters: dict[str, Any] | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Return `{data, meta}` with filters applied. A filter value of "all" is ignored."""
        query = self.db.query(Lead).filter(Lead.tenant_id == tenant_id, Lead.deleted_at.is_(None))
        for key in _FILTER_FIELDS:
            value = (filters or {}).get(key)
            if value is None or value == "all":
                continue
            query = query.filter(getattr(Lead, key) == value)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(Lead.name.ilike(pattern), Lead.company.ilike(pattern), Lead.email.ilike(pattern))
            )

        page = max(page, 1)
        total = query.count()
        rows = (
            query.order_by(Lead.updated_at.desc(), Lead.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "data": rows,
            "meta": {"total": total, "page": page, "limit": limit, "totalPages": math.ceil(total / limit) if limit else 0},
        }

    def create_lead(self, tenant_id: int, data: dict[str, Any], actor_id: int | None = None) -> Lead:
        name = (data.get("name") or "").strip()
        email = normalize_email(data.get("email"))
        if not name or not email:
            raise ValidationError("Name and email are required.")
        if self.find_by_email(tenant_id, email) is not None:
            raise ConflictError(f"Lead with email {email} already exists.")
        owner_id = data.get("owner_id") if data.get("owner_id") is not None else actor_id
        if data.get("owner_id") is not None:
            self.require_user(tenant_id, owner_id)

        lead = Lead(
            tenant_id=tenant_id,
            name=name,
            email=email,
            company=data.get("company"),
            phone=data.get("phone"),
            source=data.get("source") or "Manual",
            status=data.get("status") or LeadStatus.NEW.value,
            temperature=data.get("temperature") or LeadTemperature.COLD.value,
            score=data.get("score") if data.get("score") is not None else 50,
            notes=data.get("notes"),
            owner_id=owner_id,
        )
        try:
            self._add_with_event(lead, actor_id=actor_id)
        except IntegrityError as exc:
            raise ConflictError(f"Lead with email {email} already exists.") from exc
        logger.info("lead.created", extra={"event": "lead.created", "tenant_id": tenant_id, "lead_id": lead.id})
        return lead

    def update_lead(
        self, tenant_id: int, lead_id: int, changes: dict[str, Any], actor_id: int | None = None
    ) -> Lead:
        """Apply `changes`. A new owner is logged and announced as `lead.assigned`."""
        lead = self.get_lead(tenant_id, lead_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        self.reject_nulls(changes, _REQUIRED_FIELDS)

        if "email" in changes:
            email = normalize_email(changes["email"])
            existing = self.find_by_email(tenant_id, email)
            if existing is not None and existing.id != lead.id:
                raise ConflictError(f"Lead with email {email} already exists.")
            changes = {**changes, "email": email}

        event = None
        new_owner_id = changes.get("owner_id", lead.owner_id)
        if new_owner_id != lead.owner_id:
            owner = self.require_user(tenant_id, new_owner_id) if new_owner_id is not None else None
            event = self._lead_event(
                lead,
                EventType.LEAD_ASSIGNED,
                actor_id=actor_id,
                recipient_ids=(new_owner_id,) if new_owner_id is not None else (),
                previous_owner_id=lead.owner_id,
                owner_id=new_owner_id,
                owner_name=owner.full_name if owner is not None else None,
            )

        try:
            for key, value in changes.items():
                setattr(lead, key, value)
            if event is not None:
                SideEffectDispatcher(self.db).dispatch(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(lead)
        if event is not None:
            logger.info(
                "lead.assigned",
                extra={"event": "lead.assigned", "tenant_id": tenant_id, "lead_id": lead.id, "owner_id": new_owner_id},
            )
        return lead

    def delete_lead(self, tenant_id: int, lead_id: int, actor_id: int | None = None) -> None:
        """Soft delete. The row keeps its email so webhook dedup still finds it."""
        lead = self.get_lead(tenant_id, lead_id)
        event = self._lead_event(
            lead,
            EventType.LEAD_DELETED,
            actor_id=actor_id,
            recipient_ids=(lead.owner_id,) if lead.owner_id is not None else (),
            status=lead.status,
            owner_id=lead.owner_id,
        )
        try:
            lead.deleted_at = utcnow()
            SideEffectDispatcher(self.db).dispatch(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("lead.deleted", extra={"event": "lead.deleted", "tenant_id": tenant_id, "lead_id": lead_id})

    def add_note(self, tenant_id: int, lead_id: int, note: str | None, actor_id: int | None = None) -> ActivityLog:
        """Record a free-text note on the lead's activity trail."""
        text = (note or "").strip()
        if not text:
            raise ValidationError("Note content is required")
        lead = self.get_lead(tenant_id, lead_id)
        event = self._lead_event(
            lead,
            EventType.LEAD_NOTE_ADDED,
            actor_id=actor_id,
            recipient_ids=(lead.owner_id,) if lead.owner_id is not None else (),
            note=text,
            owner_id=lead.owner_id,
        )
        try:
            result = SideEffectDispatcher(self.db).dispatch(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(result.activity)
        return result.activity

    def ingest_webhook_lead(self, tenant_id: int, payload: dict[str, Any]) -> tuple[Lead, bool]:
        """Create a lead from an inbound webhook, deduplicated by email.

        Returns `(lead, created)`. An already known email returns the existing
        lead with `created=False`; a soft-deleted match is restored.
        """
        name = (payload.get("name") or "").strip()
        email = normalize_email(payload.get("email"))
        if not name or not email:
            logger.warning(
                "webhook.lead.invalid_payload",
                extra={"event": "webhook.lead.invalid_payload", "tenant_id": tenant_id},
            )
            raise ValidationError("Name and Email are required")

        existing = self.find_by_email(tenant_id, email)
        if existing is not None:
            if existing.deleted_at is not None:
                existing.deleted_at = None
                self.commit()
                self.db.refresh(existing)
                logger.info(
                    "webhook.lead.restored",
                    extra={"event": "webhook.lead.restored", "tenant_id": tenant_id, "lead_id": existing.id},
                )
            else:
                logger.info(
                    "webhook.lead.duplicate",
                    extra={"event": "webhook.lead.duplicate", "tenant_id": tenant_id, "lead_id": existing.id},
                )
            return existing, False

        default_owner = (
            self.db.query(User)
            .filter(User.tenant_id == tenant_id, User.is_active.is_(True), User.deleted_at.is_(None))
            .order_by(User.id.asc())
            .first()
        )
        lead = Lead(
            tenant_id=tenant_id,
            name=name,
            email=email,
            phone=payload.get("phone") or None,
            company=payload.get("company") or None,
            source=payload.get("source") or WEBHOOK_SOURCE,
            status=LeadStatus.NEW.value,
            temperature=LeadTemperature.WARM.value,
            score=50,
            notes=payload.get("notes"),
            owner_id=default_owner.id if default_owner else None,
        )
        try:
            self._add_with_event(lead, actor_id=None, source_channel="webhook")
        except IntegrityError:
            # lost a race with a concurrent delivery of the same email
            existing = self.find_by_email(tenant_id, email)
            if existing is None:
                raise
            return existing, False

        logger.info(
            "webhook.lead.created",
            extra={"event": "webhook.lead.created", "tenant_id": tenant_id, "lead_id": lead.id},
        )
        return lead, True

    def _lead_event(
        self,
        lead: Lead,
        event_type: EventType,
        actor_id: int | None,
        recipient_ids: tuple[int, ...],
        **payload: Any,
    ) -> DomainEvent:
        return DomainEvent(
            event_type=event_type,
            tenant_id=lead.tenant_id,
            target_type="lead",
            target_id=lead.id,
            target_name=lead.name,
            actor_id=actor_id,
            actor_name=self.actor_name(lead.tenant_id, actor_id),
            recipient_ids=recipient_ids,
            payload={"email": lead.email, **payload},
        )

    def _add_with_event(self, lead: Lead, actor_id: int | None, source_channel: str = "app") -> None:
        self.db.add(lead)
        try:
            self.db.flush()
            SideEffectDispatcher(self.db).dispatch(
                self._lead_event(
                    lead,
                    EventType.LEAD_CREATED,
                    actor_id=actor_id,
                    recipient_ids=(lead.owner_id,) if lead.owner_id is not None else (),
                    company=lead.company,
                    source=lead.source,
                    status=lead.status,
                    owner_id=lead.owner_id,
                    source_channel=source_channel,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(lead)
