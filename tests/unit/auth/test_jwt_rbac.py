from __future__ import annotations

from datetime import timedelta

import pytest

from dealflow.auth.jwt import create_access_token, decode_token, encode_token
from dealflow.auth.rbac import get_scopes_for_role, has_scopes, require_scopes
from dealflow.core.dependencies import get_current_user
from dealflow.core.exceptions import AuthenticationError, AuthorizationError


def test_access_token_carries_tenant_and_role():
    token = create_access_token(user_id=7, tenant_id=3, role="sales", secret="secret", name="Sam")

    claims = decode_token(token, secret="secret")

    assert claims["sub"] == "7"
    assert claims["tenant_id"] == 3
    assert claims["role"] == "sales"
    assert claims["name"] == "Sam"


def test_tampered_token_is_rejected():
    token = create_access_token(user_id=7, tenant_id=3, role="sales", secret="secret")

    with pytest.raises(AuthenticationError):
        decode_token(token, secret="other-secret")
    with pytest.raises(AuthenticationError):
        decode_token("not-a-token", secret="secret")


def test_expired_token_is_rejected():
    token = encode_token({"sub": "1", "tenant_id": 1, "role": "admin"}, secret="secret", ttl=timedelta(minutes=-5))

    with pytest.raises(AuthenticationError, match="expired"):
        decode_token(token, secret="secret")


def test_current_user_requires_core_claims():
    token = encode_token({"sub": "1"}, secret="secret", ttl=timedelta(minutes=5))

    class _Settings:
        JWT_SECRET = "secret"

    with pytest.raises(AuthenticationError):
        get_current_user(token, settings=_Settings())


def test_role_scopes():
    assert has_scopes("admin", ["workflows.write", "anything.else"])
    assert has_scopes("manager", ["settings.write", "deals.write"])
    assert has_scopes("sales", ["deals.write", "leads.write"])
    assert not has_scopes("sales", ["settings.write"])
    assert not has_scopes("viewer", ["deals.write"])
    assert get_scopes_for_role("unknown") == set()


def test_require_scopes_names_missing_scopes():
    with pytest.raises(AuthorizationError, match="deals.write"):
        require_scopes("viewer", ["deals.read", "deals.write"])
