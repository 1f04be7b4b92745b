# Overview: Authorization policy; decides allow/deny and the row scope for each action.

"""
Role and Tenant Authorization Policy

authorize() is a pure function of (claims, action, target). It never touches
the store, holds no state, and is re-evaluated on every request. The only
store read in this module is the tenant ownership point lookup in
enforce_tenant_access(), which fails closed: a lookup error is a denial.

Decision table:
- deleting your own user id is always denied (CannotDeleteSelf);
- product/customer/sale/metrics actions need a tenant claim (else NoTenant)
  and are scoped to rows with that tenant_id;
- admin-namespace kinds (tenant, user, reseller, plan) are open to admins
  (all rows), closed to plain users (Forbidden), and for resellers limited
  to their own tenants (NotOwner otherwise) plus plan listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Tenant, ADMIN_ROLES, ROLE_RESELLER
from ..validation import NotFoundError
from .token_service import Claims

logger = logging.getLogger(__name__)

FORBIDDEN = "Forbidden"
NOT_OWNER = "NotOwner"
NO_TENANT = "NoTenant"
CANNOT_DELETE_SELF = "CannotDeleteSelf"

DENY_MESSAGES = {
    FORBIDDEN: "Forbidden",
    NOT_OWNER: "Tenant is not owned by the caller",
    NO_TENANT: "No tenant associated with this account",
    CANNOT_DELETE_SELF: "Cannot delete your own account",
}

LIST = "list"
READ = "read"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"

TENANT_DATA_KINDS = frozenset({"product", "customer", "sale", "metrics"})
ADMIN_KINDS = frozenset({"tenant", "user", "reseller", "plan"})


class AuthzError(Exception):
    """Raised when the policy denies an action."""
    def __init__(self, reason: str):
        super().__init__(DENY_MESSAGES.get(reason, reason))
        self.reason = reason


@dataclass(frozen=True)
class Scope:
    """Row filter attached to an allow decision. column=None means all rows."""
    column: str | None = None
    value: str | None = None

    @property
    def is_all(self) -> bool:
        return self.column is None

    def apply(self, query, model):
        if self.column is None:
            return query
        return query.filter(getattr(model, self.column) == self.value)


ALL_ROWS = Scope()


@dataclass(frozen=True)
class Allow:
    scope: Scope


@dataclass(frozen=True)
class Deny:
    reason: str


Decision = Union[Allow, Deny]


@dataclass(frozen=True)
class Target:
    """
    What the action is aimed at.

    id is the target row id when there is one; reseller_id is the owning
    reseller of a tenant target, as read from the store.
    """
    kind: str
    id: str | None = None
    reseller_id: str | None = None


def _reseller_decision(claims: Claims, action: str, target: Target) -> Decision:
    if target.kind == "tenant":
        if action in (LIST, CREATE):
            return Allow(Scope("reseller_id", claims.sub))
        if target.reseller_id is not None and target.reseller_id == claims.sub:
            return Allow(Scope("reseller_id", claims.sub))
        return Deny(NOT_OWNER)
    if target.kind == "plan" and action in (LIST, READ):
        return Allow(ALL_ROWS)
    return Deny(FORBIDDEN)


def authorize(claims: Claims, action: str, target: Target) -> Decision:
    if target.kind == "user" and action == DELETE and target.id is not None and target.id == claims.sub:
        return Deny(CANNOT_DELETE_SELF)

    if target.kind in TENANT_DATA_KINDS:
        if not claims.tenant_id:
            return Deny(NO_TENANT)
        return Allow(Scope("tenant_id", claims.tenant_id))

    if target.kind in ADMIN_KINDS:
        if claims.role in ADMIN_ROLES:
            return Allow(ALL_ROWS)
        if claims.role == ROLE_RESELLER:
            return _reseller_decision(claims, action, target)
        return Deny(FORBIDDEN)

    return Deny(FORBIDDEN)


def enforce(claims: Claims, action: str, target: Target) -> Scope:
    """Evaluate the policy; return the scope on Allow, raise AuthzError on Deny."""
    decision = authorize(claims, action, target)
    if isinstance(decision, Deny):
        logger.warning(
            "Denied %s %s (id=%s) for user %s role=%s: %s",
            action, target.kind, target.id, claims.sub, claims.role, decision.reason,
        )
        raise AuthzError(decision.reason)
    return decision.scope


def enforce_tenant_access(claims: Claims, action: str, tenant_id: str) -> Tenant:
    """
    Ownership-checked access to one tenant row.

    Performs the point lookup, then evaluates the policy against the stored
    reseller_id. Admins get NotFoundError for a missing tenant; everyone else
    is denied without learning whether it exists. A store failure during the
    lookup is a denial, never an allow.
    """
    try:
        tenant = db.session.get(Tenant, tenant_id)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Tenant ownership lookup failed for %s; denying", tenant_id)
        raise AuthzError(NOT_OWNER if claims.role == ROLE_RESELLER else FORBIDDEN)

    if tenant is None and claims.role in ADMIN_ROLES:
        raise NotFoundError("Tenant not found")

    # A missing tenant has no owner, so this denies every non-admin
    enforce(claims, action, Target("tenant", tenant_id, tenant.reseller_id if tenant else None))
    return tenant
