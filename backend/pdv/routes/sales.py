# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pdv/routes/sales.py
"""Sales API routes, scoped to the caller's tenant."""

from flask import Blueprint, request, jsonify, g

from ..services import sales_service
from ..services.permission_service import enforce, Target, CREATE, LIST, READ
from ..validation import require_payload
from ..decorators import require_auth, handle_service_errors


sales_bp = Blueprint("sales", __name__, url_prefix="/sales")


@sales_bp.post("")
@require_auth
@handle_service_errors("create sale")
def create_sale_route():
    """
    Create a completed sale.

    Body: {items: [{product_id, quantity}], payment_method, customer_id?}
    400 for unknown products, insufficient stock or a foreign customer; no
    part of the sale is kept in those cases.
    """
    scope = enforce(g.claims, CREATE, Target("sale"))
    data = require_payload(request.get_json(silent=True) or {})
    sale = sales_service.create_sale(
        tenant_id=scope.value,
        user_id=g.claims.sub,
        items=data.get("items"),
        payment_method=data.get("payment_method"),
        customer_id=data.get("customer_id") or None,
    )
    return jsonify({"id": sale.id, "total_amount": sale.total_amount}), 201


@sales_bp.get("")
@require_auth
@handle_service_errors("list sales")
def list_sales_route():
    scope = enforce(g.claims, LIST, Target("sale"))
    return jsonify([s.to_dict() for s in sales_service.list_sales(scope.value)]), 200


@sales_bp.get("/stats")
@require_auth
@handle_service_errors("load sales stats")
def sales_stats_route():
    scope = enforce(g.claims, READ, Target("sale"))
    return jsonify(sales_service.dashboard_stats(scope.value)), 200


@sales_bp.get("/<sale_id>")
@require_auth
@handle_service_errors("load sale")
def get_sale_route(sale_id: str):
    scope = enforce(g.claims, READ, Target("sale", sale_id))
    sale = sales_service.get_sale(scope.value, sale_id)
    return jsonify(sale.to_dict(include_items=True)), 200
