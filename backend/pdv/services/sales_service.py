"""
Sale Transaction Engine

create_sale() runs the whole sale as one transaction. It first locks every
referenced product row of the tenant in product id order, then for each
requested line, in caller order, checks stock, snapshots the unit price,
decrements stock and stages the line. The Sale row with the summed total
is written last and the transaction commits once. Any failure rolls
everything back, so a sale is either fully visible with all its stock
movements or not visible at all.

Locking: one SELECT ... FOR UPDATE ordered by product id, so two sales
over the same products always acquire their row locks in the same order.
On SQLite, which ignores row locks, the transaction is opened with BEGIN
IMMEDIATE so writers are serialized instead. Failures are never retried here.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Sale, SaleItem, Product, Customer, PAYMENT_METHODS, SALE_STATUS_COMPLETED, new_id
from ..validation import ValidationError, NotFoundError, MAX_COLUMN_INT, coerce_int
from .concurrency import lock_for_update, begin_write

logger = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 5


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFound(SaleError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found", {"product_id": product_id})
        self.product_id = product_id


class InsufficientStock(SaleError):
    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}",
            {"product_id": product_id, "requested_quantity": requested, "stock_quantity": available},
        )
        self.product_id = product_id


class CustomerNotFound(SaleError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer {customer_id} not found", {"customer_id": customer_id})
        self.customer_id = customer_id


class SaleStoreError(SaleError):
    """The store failed mid-sale; the transaction was rolled back."""


def _validate_items(items) -> list[tuple[str, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("product_id")
        if not isinstance(product_id, str) or not product_id.strip():
            raise ValidationError(f"items[{index}].product_id is required")
        if item.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")
        quantity = coerce_int(f"items[{index}].quantity", item["quantity"], minimum=1, maximum=MAX_COLUMN_INT)
        lines.append((product_id.strip(), quantity))
    return lines


def _validate_payment_method(payment_method) -> str:
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    return payment_method


def create_sale(
    tenant_id: str,
    user_id: str,
    items,
    payment_method,
    customer_id: str | None = None,
) -> Sale:
    """
    Create a completed sale atomically.

    Raises ValidationError before touching the store for bad input, and
    ProductNotFound, InsufficientStock, CustomerNotFound or SaleStoreError
    after rolling the transaction back.
    """
    lines = _validate_items(items)
    payment_method = _validate_payment_method(payment_method)

    try:
        begin_write(db.session)

        if customer_id is not None:
            customer = (
                db.session.query(Customer.id)
                .filter(Customer.id == customer_id, Customer.tenant_id == tenant_id)
                .first()
            )
            if customer is None:
                raise CustomerNotFound(customer_id)

        sale = Sale(
            id=new_id(),
            tenant_id=tenant_id,
            user_id=user_id,
            customer_id=customer_id,
            payment_method=payment_method,
            status=SALE_STATUS_COMPLETED,
        )

        # One locked read in id order; lines are then checked in caller order
        product_ids = sorted({product_id for product_id, _ in lines})
        locked = lock_for_update(
            db.session.query(Product)
            .filter(Product.id.in_(product_ids), Product.tenant_id == tenant_id)
            .order_by(Product.id)
        ).all()
        products = {product.id: product for product in locked}

        total = 0
        sale_items = []
        for position, (product_id, quantity) in enumerate(lines):
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.stock_quantity < quantity:
                raise InsufficientStock(product_id, quantity, product.stock_quantity)

            unit_price = product.price
            subtotal = unit_price * quantity
            total += subtotal
            product.stock_quantity -= quantity

            sale_items.append(SaleItem(
                sale_id=sale.id,
                product_id=product.id,
                position=position,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            ))

        sale.total_amount = total
        sale.items = sale_items
        db.session.add(sale)
        db.session.commit()
    except SaleError as exc:
        db.session.rollback()
        logger.info("Sale rejected for tenant %s: %s", tenant_id, exc)
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Sale failed in the store for tenant %s", tenant_id)
        raise SaleStoreError("Failed to record sale") from exc

    return sale


def list_sales(tenant_id: str, limit: int | None = None) -> list[Sale]:
    query = (
        db.session.query(Sale)
        .filter(Sale.tenant_id == tenant_id)
        .order_by(Sale.created_at.desc(), Sale.id)
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_sale(tenant_id: str, sale_id: str) -> Sale:
    sale = db.session.query(Sale).filter(Sale.id == sale_id, Sale.tenant_id == tenant_id).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def dashboard_stats(tenant_id: str) -> dict:
    total_revenue, sales_count = (
        db.session.query(func.coalesce(func.sum(Sale.total_amount), 0), func.count(Sale.id))
        .filter(Sale.tenant_id == tenant_id)
        .one()
    )
    return {
        "total_revenue": int(total_revenue or 0),
        "sales_count": int(sales_count or 0),
        "recent_sales": [sale.to_dict() for sale in list_sales(tenant_id, limit=RECENT_SALES_LIMIT)],
    }
