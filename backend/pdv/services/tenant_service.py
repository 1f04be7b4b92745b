# Overview: Service-layer operations for tenants; creation with optional owner, partial update, guarded delete.

"""
Tenant Lifecycle

A tenant (shop) is created by an admin or a reseller. Resellers always own
what they create: the reseller_id from the request is ignored and replaced
with the caller's id. Creating a tenant with an owner writes the tenant and
its first `user` account in one transaction; either both rows exist
afterwards or neither does.

Deletion does not cascade into shop data. A tenant that still has products,
customers or sales is refused; its plain `user` accounts are removed with it.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import (
    Tenant, Plan, User, Product, Customer, Sale,
    ROLE_USER, ROLE_RESELLER, TENANT_STATUSES, DEFAULT_BUSINESS_TYPE, new_id,
)
from ..patches import TenantPatch
from ..validation import (
    ValidationError, ConflictError, DUPLICATE_EMAIL, HAS_DEPENDENTS,
    require_payload, require_string, optional_string, optional_json_text, normalize_email,
)
from pdv.time_utils import utcnow
from .auth_service import hash_password, email_taken
from .permission_service import enforce, enforce_tenant_access, Target, CREATE, LIST, UPDATE, DELETE
from .token_service import Claims

logger = logging.getLogger(__name__)


def _require_plan(plan_id: str | None) -> None:
    if plan_id and db.session.get(Plan, plan_id) is None:
        raise ValidationError("plan_id does not reference an existing plan")


def _require_reseller(user_id: str) -> None:
    user = db.session.get(User, user_id)
    if user is None or user.role != ROLE_RESELLER:
        raise ValidationError("reseller_id must reference a reseller user")


def create_tenant(claims: Claims, payload) -> Tenant:
    """
    Create a tenant and, when owner_email/owner_password are given, its owner.

    Raises AuthzError, ValidationError, ConflictError(DuplicateEmail) or
    HashingError; nothing is written unless every step succeeds.
    """
    scope = enforce(claims, CREATE, Target("tenant"))
    payload = require_payload(payload)

    name = require_string(payload, "name")
    plan_id = optional_string(payload, "plan_id", max_length=36) or None
    business_type = optional_string(payload, "business_type", max_length=64) or DEFAULT_BUSINESS_TYPE
    custom_fields = optional_json_text(payload, "custom_fields")
    status = optional_string(payload, "status", max_length=32) or "active"
    if status not in TENANT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(TENANT_STATUSES)}")
    _require_plan(plan_id)

    if scope.is_all:
        reseller_id = optional_string(payload, "reseller_id", max_length=36) or None
        if reseller_id:
            _require_reseller(reseller_id)
    else:
        reseller_id = scope.value

    owner_email = payload.get("owner_email") or None
    owner_password = payload.get("owner_password") or None
    if (owner_email is None) != (owner_password is None):
        raise ValidationError("owner_email and owner_password must be provided together")

    owner_hash = None
    if owner_email is not None:
        owner_email = normalize_email(owner_email)
        owner_hash = hash_password(owner_password)
        if email_taken(owner_email):
            raise ConflictError(DUPLICATE_EMAIL, "Owner email already exists")

    tenant = Tenant(
        id=new_id(),
        name=name,
        plan_id=plan_id,
        status=status,
        business_type=business_type,
        reseller_id=reseller_id,
        custom_fields=custom_fields,
    )
    db.session.add(tenant)
    if owner_email is not None:
        db.session.add(User(email=owner_email, password_hash=owner_hash, role=ROLE_USER, tenant_id=tenant.id))

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if owner_email is not None and email_taken(owner_email):
            raise ConflictError(DUPLICATE_EMAIL, "Owner email already exists")
        raise
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info("Tenant %s created by %s (reseller_id=%s, owner=%s)", tenant.id, claims.sub, reseller_id, bool(owner_email))
    return tenant


def list_tenants(claims: Claims) -> list[Tenant]:
    scope = enforce(claims, LIST, Target("tenant"))
    query = scope.apply(db.session.query(Tenant), Tenant)
    return query.order_by(Tenant.created_at.desc(), Tenant.name).all()


def update_tenant(claims: Claims, tenant_id: str, payload) -> Tenant:
    """Apply only the supplied fields; updated_at is refreshed on every call."""
    tenant = enforce_tenant_access(claims, UPDATE, tenant_id)
    patch = TenantPatch.from_payload(payload)
    _require_plan(patch.plan_id)

    patch.apply(tenant)
    tenant.updated_at = utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return tenant


def tenant_dependents(tenant_id: str) -> dict[str, int]:
    counts = {
        "products": db.session.query(Product.id).filter(Product.tenant_id == tenant_id).count(),
        "customers": db.session.query(Customer.id).filter(Customer.tenant_id == tenant_id).count(),
        "sales": db.session.query(Sale.id).filter(Sale.tenant_id == tenant_id).count(),
    }
    return {key: value for key, value in counts.items() if value}


def delete_tenant(claims: Claims, tenant_id: str) -> None:
    tenant = enforce_tenant_access(claims, DELETE, tenant_id)

    dependents = tenant_dependents(tenant.id)
    if dependents:
        described = ", ".join(f"{count} {kind}" for kind, count in dependents.items())
        raise ConflictError(HAS_DEPENDENTS, f"Tenant still has {described}")

    try:
        removed_users = (
            db.session.query(User)
            .filter(User.tenant_id == tenant.id, User.role == ROLE_USER)
            .delete(synchronize_session=False)
        )
        db.session.delete(tenant)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(HAS_DEPENDENTS, "Tenant is still referenced by other records")
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info("Tenant %s deleted by %s (%s user(s) removed)", tenant_id, claims.sub, removed_users)
