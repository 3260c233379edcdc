"""Schema migration and default data bootstrap."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

import dealflow.database.db as db_module
from dealflow.core.config import get_config
from dealflow.core.startup import bootstrap
from dealflow.services.stage_service import PipelineStageService
from dealflow.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def seed_defaults(tenant_key: str | None = None) -> int:
    """Ensure the default tenant and its pipeline stages exist. Returns the tenant id."""
    key = tenant_key or get_config().DEFAULT_TENANT_KEY
    with db_module.get_db_session() as session:
        tenant = TenantService(session).ensure_tenant(key)
        PipelineStageService(session).seed_default_stages(tenant.id)
        return tenant.id


def init_db() -> None:
    bootstrap()
    active_url = db_module.get_active_database_url()
    command.upgrade(_build_alembic_config(active_url), "head")
    tenant_id = seed_defaults()
    logger.info(
        "database.initialized",
        extra={
            "event": "database.initialized",
            "database_url_scheme": active_url.split("://", 1)[0],
            "tenant_id": tenant_id,
        },
    )


if __name__ == "__main__":
    init_db()
