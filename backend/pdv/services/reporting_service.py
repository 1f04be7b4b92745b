# Overview: Service-layer operations for tenant dashboard metrics.

"""
Tenant Metrics

All figures are computed from committed rows at request time, scoped to one
tenant. Amounts are integer minor units; only average_ticket is fractional.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import Sale, SaleItem, Product, Customer
from pdv.time_utils import days_ago

MAX_TREND_DAYS = 365
MAX_ALERTS = 10


def overview(tenant_id: str) -> dict:
    total_revenue, sales_count = (
        db.session.query(func.coalesce(func.sum(Sale.total_amount), 0), func.count(Sale.id))
        .filter(Sale.tenant_id == tenant_id)
        .one()
    )
    total_revenue = int(total_revenue or 0)
    sales_count = int(sales_count or 0)

    products_count = db.session.query(func.count(Product.id)).filter(Product.tenant_id == tenant_id).scalar()
    customers_count = db.session.query(func.count(Customer.id)).filter(Customer.tenant_id == tenant_id).scalar()

    return {
        "total_revenue": total_revenue,
        "sales_count": sales_count,
        "average_ticket": (total_revenue / sales_count) if sales_count else 0.0,
        "products_count": int(products_count or 0),
        "customers_count": int(customers_count or 0),
    }


def _day_label(value) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def sales_trend(tenant_id: str, days: int = 7) -> list[dict]:
    """Revenue and sale count per day over the last `days` days (today included), oldest first."""
    day = func.date(Sale.created_at)
    rows = (
        db.session.query(
            day.label("day"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
            func.count(Sale.id).label("sales_count"),
        )
        .filter(Sale.tenant_id == tenant_id, Sale.created_at >= days_ago(days))
        .group_by(day)
        .order_by(day.asc())
        .all()
    )
    return [
        {"date": _day_label(row.day), "revenue": int(row.revenue), "sales_count": int(row.sales_count)}
        for row in rows
    ]


def top_products(tenant_id: str, limit: int = 5) -> list[dict]:
    quantity_sold = func.sum(SaleItem.quantity).label("quantity_sold")
    rows = (
        db.session.query(
            SaleItem.product_id,
            Product.name,
            quantity_sold,
            func.sum(SaleItem.subtotal).label("revenue"),
        )
        .join(Sale, SaleItem.sale_id == Sale.id)
        .join(Product, SaleItem.product_id == Product.id)
        .filter(Sale.tenant_id == tenant_id)
        .group_by(SaleItem.product_id, Product.name)
        .order_by(quantity_sold.desc(), Product.name)
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.product_id,
            "product_name": row.name,
            "quantity_sold": int(row.quantity_sold),
            "revenue": int(row.revenue),
        }
        for row in rows
    ]


def inventory_alerts(tenant_id: str, threshold: int = 10) -> list[dict]:
    rows = (
        db.session.query(Product)
        .filter(Product.tenant_id == tenant_id, Product.stock_quantity <= threshold)
        .order_by(Product.stock_quantity.asc(), Product.name)
        .limit(MAX_ALERTS)
        .all()
    )
    return [
        {
            "product_id": p.id,
            "product_name": p.name,
            "current_stock": p.stock_quantity,
            "min_stock": threshold,
        }
        for p in rows
    ]
