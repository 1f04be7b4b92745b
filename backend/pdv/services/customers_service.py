# Overview: Service-layer operations for customers; tenant-scoped list and create.

from ..extensions import db
from ..models import Customer
from ..validation import require_payload, require_string, optional_string, normalize_email
from .permission_service import enforce, Target, CREATE, LIST
from .token_service import Claims


def list_customers(claims: Claims) -> list[Customer]:
    scope = enforce(claims, LIST, Target("customer"))
    query = scope.apply(db.session.query(Customer), Customer)
    return query.order_by(Customer.name, Customer.id).all()


def create_customer(claims: Claims, payload) -> Customer:
    scope = enforce(claims, CREATE, Target("customer"))
    payload = require_payload(payload)

    email = payload.get("email") or None
    customer = Customer(
        tenant_id=scope.value,
        name=require_string(payload, "name"),
        email=normalize_email(email) if email else None,
        phone=optional_string(payload, "phone", max_length=32) or None,
        notes=optional_string(payload, "notes", max_length=None) or None,
    )
    db.session.add(customer)
    db.session.commit()
    return customer
