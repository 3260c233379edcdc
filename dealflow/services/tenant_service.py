"""Tenant lookup and provisioning."""

from __future__ import annotations

import logging

from dealflow.core.exceptions import NotFoundError
from dealflow.models import Tenant
from dealflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


class TenantService(BaseService):
    def get_by_key(self, tenant_key: str) -> Tenant:
        tenant = (
            self.db.query(Tenant)
            .filter(Tenant.tenant_key == tenant_key, Tenant.is_active.is_(True), Tenant.deleted_at.is_(None))
            .first()
        )
        if tenant is None:
            raise NotFoundError(f"Tenant not found: {tenant_key}")
        return tenant

    def ensure_tenant(self, tenant_key: str, name: str | None = None) -> Tenant:
        """Return the tenant for `tenant_key`, creating it when missing."""
        tenant = self.db.query(Tenant).filter(Tenant.tenant_key == tenant_key).first()
        if tenant is not None:
            return tenant
        tenant = Tenant(tenant_key=tenant_key, name=name or tenant_key.title())
        self.db.add(tenant)
        self.commit()
        self.db.refresh(tenant)
        logger.info("tenant.created", extra={"event": "tenant.created", "tenant_id": tenant.id, "tenant_key": tenant_key})
        return tenant
