"""HS256 bearer token helpers.

Tokens carry only what request handlers need to scope work: the user id
(`sub`), the tenant and the role. Identity federation is handled upstream.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from dealflow.core.exceptions import AuthenticationError

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(f"{data}{padding}".encode("ascii"))


def _segment(payload: dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return _b64url_encode(raw)


def _signature(signing_input: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def encode_token(claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Sign `claims` into a compact JWT that expires after `ttl`."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")

    issued_at = datetime.now(timezone.utc)
    body = {
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + ttl).timestamp()),
        "jti": uuid.uuid4().hex,
        **claims,
    }
    signing_input = f"{_segment(_HEADER)}.{_segment(body)}"
    return f"{signing_input}.{_signature(signing_input, secret)}"


def decode_token(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Verify signature and expiry, then return the claims."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")

    parts = token.split(".")
    if len(parts) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature_segment = parts

    if not hmac.compare_digest(_signature(f"{header_segment}.{payload_segment}", secret), signature_segment):
        raise AuthenticationError("Invalid token signature.")

    try:
        claims = json.loads(_b64url_decode(payload_segment).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise AuthenticationError("Invalid token payload.") from exc
    if not isinstance(claims, dict):
        raise AuthenticationError("Invalid token payload.")

    if verify_exp:
        exp = claims.get("exp")
        if exp is None:
            raise AuthenticationError("Token is missing exp claim.")
        if int(exp) < int(datetime.now(timezone.utc).timestamp()):
            raise AuthenticationError("Token has expired.")
    return claims


def create_access_token(
    user_id: int,
    tenant_id: int,
    role: str,
    secret: str,
    name: str | None = None,
    ttl_minutes: int = 60,
) -> str:
    """Create an access token scoped to one tenant."""
    claims: dict[str, Any] = {"sub": str(user_id), "tenant_id": tenant_id, "role": role}
    if name:
        claims["name"] = name
    return encode_token(claims, secret=secret, ttl=timedelta(minutes=ttl_minutes))
