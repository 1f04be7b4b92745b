# backend/pdv/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: every product operation goes through the authorization policy,
which scopes it to rows whose tenant_id equals the caller's tenant claim.
A product in another tenant is indistinguishable from a missing one.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..patches import ProductPatch
from ..validation import (
    NotFoundError,
    require_payload,
    require_string,
    optional_string,
    require_price,
    optional_int,
    MAX_COLUMN_INT,
)
from pdv.time_utils import utcnow
from .permission_service import enforce, Target, CREATE, LIST, UPDATE
from .token_service import Claims


def list_products(claims: Claims) -> list[Product]:
    scope = enforce(claims, LIST, Target("product"))
    query = scope.apply(db.session.query(Product), Product)
    return query.order_by(Product.name, Product.id).all()


def create_product(claims: Claims, payload) -> Product:
    scope = enforce(claims, CREATE, Target("product"))
    payload = require_payload(payload)

    product = Product(
        tenant_id=scope.value,
        name=require_string(payload, "name"),
        description=optional_string(payload, "description", max_length=None),
        price=require_price(payload),
        stock_quantity=optional_int(payload, "stock_quantity", minimum=0, maximum=MAX_COLUMN_INT) or 0,
        sku=optional_string(payload, "sku", max_length=64) or None,
    )
    db.session.add(product)
    db.session.commit()
    return product


def update_product(claims: Claims, product_id: str, payload) -> Product:
    """Partial update of a product in the caller's tenant."""
    scope = enforce(claims, UPDATE, Target("product", product_id))
    patch = ProductPatch.from_payload(payload)

    product = scope.apply(db.session.query(Product).filter(Product.id == product_id), Product).first()
    if product is None:
        raise NotFoundError("Product not found")

    patch.apply(product)
    product.updated_at = utcnow()
    db.session.commit()
    return product
