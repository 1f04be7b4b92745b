from __future__ import annotations

import uuid

from ..extensions import db
from pdv.time_utils import to_utc_z

TENANT_STATUSES = ("active", "inactive", "suspended")
DEFAULT_BUSINESS_TYPE = "retail"


def new_id() -> str:
    return str(uuid.uuid4())


class Plan(db.Model):
    """Subscription catalog entry. Prices are integer minor units (cents)."""
    __tablename__ = "plans"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    max_users = db.Column(db.Integer, nullable=False)
    features = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Plan id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "max_users": self.max_users,
            "features": self.features,
            "created_at": to_utc_z(self.created_at),
        }


class Tenant(db.Model):
    """
    Multi-tenant root: every shop is a Tenant.

    Products, customers and sales carry the tenant id directly. A tenant is
    owned either by a reseller (reseller_id points at a `reseller` user) or
    by the platform (reseller_id is NULL).

    custom_fields is an opaque JSON document stored as text; the server only
    checks that it parses.
    """
    __tablename__ = "tenants"
    __table_args__ = (
        db.Index("ix_tenants_reseller_id", "reseller_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    plan_id = db.Column(db.String(36), db.ForeignKey("plans.id"), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="active")
    business_type = db.Column(db.String(64), nullable=True, default=DEFAULT_BUSINESS_TYPE)
    reseller_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    custom_fields = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    plan = db.relationship("Plan", backref=db.backref("tenants", lazy=True))
    reseller = db.relationship("User", foreign_keys=[reseller_id], backref=db.backref("owned_tenants", lazy=True))

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r} reseller_id={self.reseller_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "plan_id": self.plan_id,
            "status": self.status,
            "business_type": self.business_type,
            "reseller_id": self.reseller_id,
            "custom_fields": self.custom_fields,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
