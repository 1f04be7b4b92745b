# Overview: Service-layer operations for auth; encapsulates password hashing, registration and login.

"""
Credentials and Self-Service Accounts

Passwords are hashed with bcrypt. bcrypt only reads the first 72 bytes of
its input, so longer passwords are rejected instead of silently truncated.

Registration always allocates a fresh private tenant id for the new account;
shop membership is granted by an administrator afterwards (see
tenant_service.create_tenant with an owner, or user_service.update_user).
"""

import logging
from datetime import timedelta

import bcrypt
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, Tenant, ROLE_USER, new_id
from ..validation import ValidationError, ConflictError, DUPLICATE_EMAIL, normalize_email
from .token_service import issue_token, DEFAULT_ALGORITHM

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


class HashingError(Exception):
    """Raised when the password hashing primitive itself fails."""
    pass


class InvalidCredentialsError(Exception):
    """Raised on unknown email or wrong password (indistinguishable to callers)."""
    pass


def _default_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS))
    return BCRYPT_ROUNDS


def validate_password(password) -> None:
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash password using bcrypt.

    Raises ValidationError for unusable input and HashingError if the salt
    or hash cannot be produced (e.g. the entropy source is unavailable).
    """
    validate_password(password)
    try:
        salt = bcrypt.gensalt(rounds=rounds or _default_rounds())
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    except (OSError, ValueError, NotImplementedError) as exc:
        raise HashingError("Failed to hash password") from exc
    return hashed.decode("utf-8")


def verify_password(password_hash: str, password: str) -> bool:
    """Return True if password matches; False for mismatches and malformed hashes."""
    if not password_hash or not isinstance(password, str):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def email_taken(email: str, exclude_user_id: str | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def commit_user(user: User) -> User:
    """Commit a pending user row, translating the unique-email race into a conflict."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if email_taken(user.email, exclude_user_id=user.id):
            raise ConflictError(DUPLICATE_EMAIL, "Email already exists")
        raise
    return user


def register(email, password, role=None, allowed_roles=frozenset({ROLE_USER})) -> User:
    """
    Self-service registration.

    role defaults to `user`; any other role must be listed in allowed_roles.
    Raises ConflictError(DuplicateEmail) when the email is already in use.
    """
    email = normalize_email(email)
    role = role or ROLE_USER
    if role not in allowed_roles:
        raise ValidationError(f"role '{role}' cannot be self-registered")

    password_hash = hash_password(password)

    if email_taken(email):
        raise ConflictError(DUPLICATE_EMAIL, "Email already exists")

    user = User(email=email, password_hash=password_hash, role=role, tenant_id=new_id())
    db.session.add(user)
    commit_user(user)
    logger.info("Registered user %s with role %s", user.id, role)
    return user


def authenticate(email, password) -> User:
    """Look up a user by email and check the password. Raises InvalidCredentialsError."""
    if not isinstance(email, str) or not isinstance(password, str) or not password:
        raise InvalidCredentialsError("Invalid credentials")

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(user.password_hash, password):
        raise InvalidCredentialsError("Invalid credentials")
    return user


def login(
    email,
    password,
    secret: str,
    ttl: timedelta = timedelta(hours=24),
    algorithm: str = DEFAULT_ALGORITHM,
) -> dict:
    """Authenticate and issue a bearer token with the login response payload."""
    user = authenticate(email, password)

    business_type = None
    if user.tenant_id:
        tenant = db.session.get(Tenant, user.tenant_id)
        if tenant is not None:
            business_type = tenant.business_type

    token = issue_token(user.id, user.tenant_id, user.role, secret, ttl=ttl, algorithm=algorithm)
    return {
        "token": token,
        "role": user.role,
        "business_type": business_type,
        "email": user.email,
        "name": None,
    }
