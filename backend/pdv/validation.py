# Overview: Shared error types and payload coercion helpers for request bodies.

from __future__ import annotations

import json
from typing import Any

# Largest minor-unit amount accepted for a single price (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
# Largest value a 32-bit INTEGER column holds
MAX_COLUMN_INT = 2_147_483_647

DUPLICATE_EMAIL = "DuplicateEmail"
HAS_DEPENDENTS = "HasDependents"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """
    409-level business rule conflict.

    reason is one of DUPLICATE_EMAIL or HAS_DEPENDENTS; the message names the
    blocking relationship for the caller.
    """
    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class NotFoundError(LookupError):
    """404-level missing resource."""


def require_payload(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def normalize_email(value: Any) -> str:
    """Trim and lower-case an email; reject anything without a local part and domain."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("email is required")
    email = value.strip().lower()
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or " " in email:
        raise ValidationError("email is not a valid address")
    if len(email) > 255:
        raise ValidationError("email is too long")
    return email


def require_string(payload: dict, key: str, *, max_length: int = 255) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters")
    return value


def optional_string(payload: dict, key: str, *, max_length: int | None = 255) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters")
    return value


def coerce_int(key: str, value: Any, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion.

    Accepts ints and plain digit strings; rejects bools, floats, decimals and
    scientific notation so money never passes through floating point.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{key} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{key} must be <= {maximum}")
    return result


def require_int(payload: dict, key: str, **bounds) -> int:
    if payload.get(key) is None:
        raise ValidationError(f"{key} is required")
    return coerce_int(key, payload[key], **bounds)


def optional_int(payload: dict, key: str, **bounds) -> int | None:
    if payload.get(key) is None:
        return None
    return coerce_int(key, payload[key], **bounds)


def require_price(payload: dict, key: str = "price") -> int:
    return require_int(payload, key, minimum=0, maximum=MAX_PRICE_CENTS)


def optional_json_text(payload: dict, key: str) -> str | None:
    """
    Normalize an opaque JSON document to its text form.

    Clients send either an already-encoded JSON string or a JSON object; both
    are stored as text. Strings that do not parse are rejected.
    """
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        try:
            json.loads(value)
        except ValueError:
            raise ValidationError(f"{key} must be valid JSON")
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    raise ValidationError(f"{key} must be a JSON object or JSON text")
