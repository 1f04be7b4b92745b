# Overview: Service-layer operations for the subscription plan catalog.

from ..extensions import db
from ..models import Plan
from ..validation import MAX_COLUMN_INT, require_payload, require_string, require_price, require_int, optional_string
from .permission_service import enforce, Target, CREATE, LIST
from .token_service import Claims


def insert_plan(name: str, price: int, max_users: int, features: str | None = None) -> Plan:
    plan = Plan(name=name, price=price, max_users=max_users, features=features)
    db.session.add(plan)
    db.session.commit()
    return plan


def create_plan(claims: Claims, payload) -> Plan:
    enforce(claims, CREATE, Target("plan"))
    payload = require_payload(payload)
    return insert_plan(
        name=require_string(payload, "name", max_length=120),
        price=require_price(payload),
        max_users=require_int(payload, "max_users", minimum=1, maximum=MAX_COLUMN_INT),
        features=optional_string(payload, "features", max_length=None),
    )


def list_plans(claims: Claims) -> list[Plan]:
    enforce(claims, LIST, Target("plan"))
    return db.session.query(Plan).order_by(Plan.price, Plan.name).all()
