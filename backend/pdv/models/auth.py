from __future__ import annotations

from ..extensions import db
from pdv.time_utils import to_utc_z
from .tenancy import new_id

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_RESELLER = "reseller"
ROLE_USER = "user"

ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_RESELLER, ROLE_USER)

# Platform-level roles with unrestricted access to the admin namespace
ADMIN_ROLES = frozenset({ROLE_SUPER_ADMIN, ROLE_ADMIN})


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Emails are unique platform-wide. tenant_id is the user's workspace; it is
    NULL for platform-level actors (super_admin created from the CLI) and is
    not a foreign key, because reseller workspaces have no tenant row.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_tenant_id", "tenant_id"),
        db.Index("ix_users_role", "role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default=ROLE_USER)
    tenant_id = db.Column(db.String(36), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "tenant_id": self.tenant_id,
            "created_at": to_utc_z(self.created_at),
        }
