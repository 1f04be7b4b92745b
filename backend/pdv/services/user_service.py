# Overview: Service-layer operations for platform users and resellers (admin namespace).

"""
User and Reseller Lifecycle (admin-only)

Every account gets a tenant_id. Resellers get a private workspace id with
no tenant row behind it. Other users either name an existing tenant (shop
staff) or, when none is given, receive a fresh private id as well.

A user is never deleted while something still points at it: a reseller that
owns tenants, or sales attributed to the user, block the delete with
ConflictError(HasDependents).
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import User, Tenant, Sale, ROLES, ROLE_USER, ROLE_RESELLER, ROLE_SUPER_ADMIN, new_id
from ..patches import UserPatch
from ..validation import (
    ValidationError, ConflictError, NotFoundError, DUPLICATE_EMAIL, HAS_DEPENDENTS,
    require_payload, optional_string, normalize_email,
)
from .auth_service import hash_password, email_taken, commit_user
from .permission_service import enforce, Target, CREATE, LIST, UPDATE, DELETE
from .token_service import Claims

logger = logging.getLogger(__name__)


def _require_tenant(tenant_id: str) -> None:
    if db.session.get(Tenant, tenant_id) is None:
        raise ValidationError("tenant_id does not reference an existing tenant")


def _new_account(email, password, role: str, tenant_id: str | None) -> User:
    email = normalize_email(email)
    password_hash = hash_password(password)
    if email_taken(email):
        raise ConflictError(DUPLICATE_EMAIL, "Email already exists")
    user = User(email=email, password_hash=password_hash, role=role, tenant_id=tenant_id)
    db.session.add(user)
    return commit_user(user)


def create_reseller(claims: Claims, payload) -> User:
    """Create a reseller. The role is always `reseller`, whatever the payload says."""
    enforce(claims, CREATE, Target("reseller"))
    payload = require_payload(payload)
    user = _new_account(payload.get("email"), payload.get("password"), ROLE_RESELLER, new_id())
    logger.info("Reseller %s created by %s", user.id, claims.sub)
    return user


def list_resellers(claims: Claims) -> list[User]:
    enforce(claims, LIST, Target("reseller"))
    return (
        db.session.query(User)
        .filter(User.role == ROLE_RESELLER)
        .order_by(User.created_at.desc(), User.email)
        .all()
    )


def create_user(claims: Claims, payload) -> User:
    """
    Create a user with any role (default `user`).

    tenant_id, when given, must name an existing tenant; otherwise a fresh
    private tenant id is allocated.
    """
    enforce(claims, CREATE, Target("user"))
    payload = require_payload(payload)

    role = optional_string(payload, "role", max_length=32) or ROLE_USER
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    tenant_id = optional_string(payload, "tenant_id", max_length=36) or None
    if tenant_id:
        _require_tenant(tenant_id)
    else:
        tenant_id = new_id()
        logger.info("No tenant_id supplied for new %s account; allocated private tenant id %s", role, tenant_id)

    user = _new_account(payload.get("email"), payload.get("password"), role, tenant_id)
    logger.info("User %s (%s) created by %s", user.id, role, claims.sub)
    return user


def list_users(claims: Claims) -> list[User]:
    enforce(claims, LIST, Target("user"))
    return db.session.query(User).order_by(User.created_at.desc(), User.email).all()


def owned_tenant_count(user_id: str) -> int:
    return db.session.query(Tenant.id).filter(Tenant.reseller_id == user_id).count()


def update_user(claims: Claims, user_id: str, payload) -> User:
    """
    Partial update. A supplied password is re-hashed; if hashing fails the
    whole update is abandoned (HashingError) and the stored hash is untouched.
    """
    enforce(claims, UPDATE, Target("user", user_id))
    patch = UserPatch.from_payload(payload)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if patch.email is not None and email_taken(patch.email, exclude_user_id=user.id):
        raise ConflictError(DUPLICATE_EMAIL, "Email already exists")
    if patch.tenant_id is not None:
        _require_tenant(patch.tenant_id)
    if patch.role is not None and user.role == ROLE_RESELLER and patch.role != ROLE_RESELLER:
        owned = owned_tenant_count(user.id)
        if owned:
            raise ConflictError(HAS_DEPENDENTS, f"User is a reseller that still owns {owned} tenant(s)")

    password_hash = hash_password(patch.password) if patch.password is not None else None

    patch.apply(user)
    if password_hash is not None:
        user.password_hash = password_hash
    return commit_user(user)


def delete_user(claims: Claims, user_id: str) -> None:
    enforce(claims, DELETE, Target("user", user_id))

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    owned = owned_tenant_count(user.id)
    if owned:
        raise ConflictError(HAS_DEPENDENTS, f"User is a reseller that still owns {owned} tenant(s)")
    sales = db.session.query(Sale.id).filter(Sale.user_id == user.id).count()
    if sales:
        raise ConflictError(HAS_DEPENDENTS, f"User is referenced by {sales} sale(s)")

    try:
        db.session.delete(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(HAS_DEPENDENTS, "User is still referenced by other records")
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info("User %s deleted by %s", user_id, claims.sub)


def upsert_admin(email, password, role: str = ROLE_SUPER_ADMIN) -> tuple[User, bool]:
    """
    Create or reset a platform-level administrator with no tenant.

    Used by the CLI bootstrap; returns (user, created).
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    email = normalize_email(email)
    password_hash = hash_password(password)

    user = db.session.query(User).filter(User.email == email).first()
    created = user is None
    if created:
        user = User(email=email, password_hash=password_hash, role=role, tenant_id=None)
        db.session.add(user)
    else:
        if user.role == ROLE_RESELLER and role != ROLE_RESELLER:
            owned = owned_tenant_count(user.id)
            if owned:
                raise ConflictError(HAS_DEPENDENTS, f"User is a reseller that still owns {owned} tenant(s)")
        user.password_hash = password_hash
        user.role = role
    db.session.commit()
    return user, created


def reset_password(email, password) -> User:
    email = normalize_email(email)
    user = db.session.query(User).filter(User.email == email).first()
    if user is None:
        raise NotFoundError("User not found")
    user.password_hash = hash_password(password)
    db.session.commit()
    return user
