"""Role-based authorization helpers."""

from __future__ import annotations

from dealflow.core.exceptions import AuthorizationError

_READ_SCOPES = {
    "pipeline.read",
    "deals.read",
    "leads.read",
    "tasks.read",
    "analytics.read",
    "logs.read",
    "notifications.read",
    "attendance.read",
}

ROLE_SCOPES: dict[str, set[str]] = {
    "admin": {"*"},
    "manager": _READ_SCOPES
    | {
        "deals.write",
        "leads.write",
        "tasks.write",
        "attendance.write",
        "settings.write",
        "workflows.read",
        "workflows.write",
    },
    "sales": _READ_SCOPES | {"deals.write", "leads.write", "tasks.write", "attendance.write"},
    "viewer": _READ_SCOPES,
}


def get_scopes_for_role(role: str) -> set[str]:
    """Return scopes granted to a role."""
    return ROLE_SCOPES.get(role.lower(), set())


def has_scopes(role: str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
    """Check if role includes every required scope."""
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required scopes."""
    if has_scopes(role=role, required_scopes=required_scopes):
        return
    missing = sorted(set(required_scopes) - get_scopes_for_role(role))
    raise AuthorizationError(f"Missing required scopes: {', '.join(missing)}")
