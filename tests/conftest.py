from __future__ import annotations

import dataclasses

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dealflow.auth.jwt import create_access_token
from dealflow.core.config import get_config
from dealflow.database.db import get_db
from dealflow.main import app
from dealflow.models import Base, Lead, Tenant, User
from dealflow.models.enums import LeadStatus, UserRole
from dealflow.services.stage_service import PipelineStageService


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tenant(db_session):
    tenant = Tenant(tenant_key="default", name="Default")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def stages(db_session, tenant):
    return PipelineStageService(db_session).seed_default_stages(tenant.id)


def _add_user(session, tenant_id: int, email: str, full_name: str, role: str) -> User:
    user = User(tenant_id=tenant_id, email=email, full_name=full_name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(db_session, tenant):
    return _add_user(db_session, tenant.id, "admin@example.com", "Ada Admin", UserRole.ADMIN.value)


@pytest.fixture
def manager(db_session, tenant, admin):
    return _add_user(db_session, tenant.id, "manager@example.com", "Max Manager", UserRole.MANAGER.value)


@pytest.fixture
def sales_rep(db_session, tenant, manager):
    return _add_user(db_session, tenant.id, "rep@example.com", "Sam Rep", UserRole.SALES.value)


@pytest.fixture
def viewer(db_session, tenant, sales_rep):
    return _add_user(db_session, tenant.id, "viewer@example.com", "Vic Viewer", UserRole.VIEWER.value)


@pytest.fixture
def outsider(db_session, tenant):
    """An active user who belongs to a different tenant."""
    other = Tenant(tenant_key="other", name="Other Co")
    db_session.add(other)
    db_session.commit()
    return _add_user(db_session, other.id, "olga@other.test", "Olga Outsider", UserRole.SALES.value)


@pytest.fixture
def lead(db_session, tenant, sales_rep):
    lead = Lead(
        tenant_id=tenant.id,
        name="Jane Buyer",
        email="jane@acme.test",
        company="Acme",
        status=LeadStatus.QUALIFIED.value,
        owner_id=sales_rep.id,
    )
    db_session.add(lead)
    db_session.commit()
    db_session.refresh(lead)
    return lead


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(
            user_id=user.id,
            tenant_id=user.tenant_id,
            role=user.role,
            secret=get_config().JWT_SECRET,
            name=user.full_name,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def open_webhook(monkeypatch):
    """Run webhook requests without a shared secret."""
    import dealflow.api.v1.webhooks as webhooks

    cfg = dataclasses.replace(get_config(), WEBHOOK_SECRET=None)
    monkeypatch.setattr(webhooks, "get_config", lambda: cfg)
    return cfg
