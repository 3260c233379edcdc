"""Shared authorization helpers for API v1 route modules."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Header

from dealflow.auth.rbac import require_scopes
from dealflow.core.config import get_config
from dealflow.core.dependencies import CurrentUser, get_current_user
from dealflow.core.exceptions import AuthenticationError


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(authorization: str | None, scopes: list[str]) -> CurrentUser:
    token = _extract_bearer_token(authorization)
    user = get_current_user(token=token, settings=get_config())
    require_scopes(user.role, scopes)
    return user


def require(*scopes: str) -> Callable[..., CurrentUser]:
    """Build a dependency that authenticates the caller and checks `scopes`."""

    def dependency(authorization: str | None = Header(default=None, alias="Authorization")) -> CurrentUser:
        return authorize(authorization=authorization, scopes=list(scopes))

    return dependency
