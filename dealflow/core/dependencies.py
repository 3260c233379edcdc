"""Dependency providers for API handlers and background workers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dealflow.auth.jwt import decode_token
from dealflow.core.config import Config, get_config
from dealflow.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    role: str
    tenant_id: int
    claims: dict[str, Any]

    @property
    def name(self) -> str | None:
        return self.claims.get("name")


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_current_user(token: str, settings: Config | None = None) -> CurrentUser:
    """Resolve the current user from a bearer token."""
    cfg = settings or get_settings()
    claims = decode_token(token=token, secret=cfg.JWT_SECRET)
    try:
        return CurrentUser(
            user_id=int(claims["sub"]),
            role=str(claims["role"]).lower(),
            tenant_id=int(claims["tenant_id"]),
            claims=claims,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid auth claims.") from exc
