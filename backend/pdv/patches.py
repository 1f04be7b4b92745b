"""
Partial-update value types.

Each patch holds one optional attribute per writable column. None means the
field was absent from the request and is left untouched; apply() merges the
present fields onto the loaded row so the ORM issues one fixed-shape UPDATE.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

from .models import ROLES, TENANT_STATUSES
from .validation import (
    ValidationError,
    MAX_PRICE_CENTS,
    MAX_COLUMN_INT,
    normalize_email,
    optional_int,
    optional_json_text,
    optional_string,
    require_payload,
)


class _Patch:
    def present(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def apply(self, row) -> None:
        for key, value in self.present().items():
            setattr(row, key, value)


def _optional_name(payload: dict) -> Optional[str]:
    name = optional_string(payload, "name")
    if name is not None and not name:
        raise ValidationError("name cannot be empty")
    return name


@dataclass
class TenantPatch(_Patch):
    name: Optional[str] = None
    plan_id: Optional[str] = None
    status: Optional[str] = None
    business_type: Optional[str] = None
    custom_fields: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> "TenantPatch":
        payload = require_payload(payload)
        status = optional_string(payload, "status", max_length=32)
        if status is not None and status not in TENANT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(TENANT_STATUSES)}")
        return cls(
            name=_optional_name(payload),
            plan_id=optional_string(payload, "plan_id", max_length=36) or None,
            status=status,
            business_type=optional_string(payload, "business_type", max_length=64),
            custom_fields=optional_json_text(payload, "custom_fields"),
        )


@dataclass
class UserPatch(_Patch):
    """Password is carried in clear text and hashed by the caller before apply()."""
    email: Optional[str] = None
    role: Optional[str] = None
    tenant_id: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> "UserPatch":
        payload = require_payload(payload)
        email = payload.get("email")
        role = optional_string(payload, "role", max_length=32)
        if role is not None and role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        password = payload.get("password")
        if password is not None and not isinstance(password, str):
            raise ValidationError("password must be a string")
        return cls(
            email=normalize_email(email) if email is not None else None,
            role=role,
            tenant_id=optional_string(payload, "tenant_id", max_length=36) or None,
            # An empty password field means "keep the current password"
            password=password or None,
        )

    def apply(self, row) -> None:
        for key, value in self.present().items():
            if key == "password":
                continue
            setattr(row, key, value)


@dataclass
class ProductPatch(_Patch):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = None
    stock_quantity: Optional[int] = None
    sku: Optional[str] = None

    @classmethod
    def from_payload(cls, payload) -> "ProductPatch":
        payload = require_payload(payload)
        return cls(
            name=_optional_name(payload),
            description=optional_string(payload, "description", max_length=None),
            price=optional_int(payload, "price", minimum=0, maximum=MAX_PRICE_CENTS),
            stock_quantity=optional_int(payload, "stock_quantity", minimum=0, maximum=MAX_COLUMN_INT),
            sku=optional_string(payload, "sku", max_length=64),
        )
