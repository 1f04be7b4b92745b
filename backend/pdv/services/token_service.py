# Overview: Service-layer operations for bearer tokens; signs and verifies identity claims.

"""
Signed Identity Tokens

Tokens are HMAC-signed JWTs carrying {sub, tenant_id, role, exp}. Nothing is
stored server-side: every request re-verifies the signature and expiry, so
revocation is by expiry only.

verify_token distinguishes three failure kinds (InvalidSignature, Expired,
Malformed). Callers reject all three the same way; the kind exists so the
rejection can be logged meaningfully.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

DEFAULT_TTL = timedelta(hours=24)
DEFAULT_ALGORITHM = "HS256"

INVALID_SIGNATURE = "InvalidSignature"
EXPIRED = "Expired"
MALFORMED = "Malformed"


class AuthError(Exception):
    """Raised when a bearer token cannot be trusted."""
    def __init__(self, kind: str, message: str | None = None):
        super().__init__(message or kind)
        self.kind = kind


@dataclass(frozen=True)
class Claims:
    """Decoded identity asserted by a verified token."""
    sub: str
    role: str
    tenant_id: str | None
    exp: int


def issue_token(
    subject_id: str,
    tenant_id: str | None,
    role: str,
    secret: str,
    ttl: timedelta = DEFAULT_TTL,
    algorithm: str = DEFAULT_ALGORITHM,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": subject_id,
        "tenant_id": tenant_id,
        "role": role,
        "exp": int((issued_at + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> Claims:
    """
    Verify signature and expiry and return the claims.

    Raises AuthError with kind INVALID_SIGNATURE, EXPIRED or MALFORMED.
    """
    if not token or not isinstance(token, str):
        raise AuthError(MALFORMED, "Token is empty")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError(EXPIRED, "Token has expired") from exc
    except jwt.InvalidSignatureError as exc:
        raise AuthError(INVALID_SIGNATURE, "Token signature is invalid") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError(MALFORMED, "Token is malformed") from exc

    role = payload.get("role")
    tenant_id = payload.get("tenant_id")
    if not isinstance(role, str) or not role:
        raise AuthError(MALFORMED, "Token has no role claim")
    if tenant_id is not None and not isinstance(tenant_id, str):
        raise AuthError(MALFORMED, "Token tenant_id claim is not a string")

    return Claims(
        sub=str(payload["sub"]),
        role=role,
        tenant_id=tenant_id or None,
        exp=int(payload["exp"]),
    )
