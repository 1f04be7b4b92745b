# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pdv/routes/products.py
"""
Product routes with multi-tenant support.

MULTI-TENANT: every route is scoped to the tenant in the caller's token.
"""
from flask import Blueprint, request, jsonify, g

from ..services import products_service
from ..decorators import require_auth, handle_service_errors

products_bp = Blueprint("products", __name__, url_prefix="/products")


@products_bp.get("")
@require_auth
@handle_service_errors("list products")
def list_products_route():
    products = products_service.list_products(g.claims)
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.post("")
@require_auth
@handle_service_errors("create product")
def create_product_route():
    """Body: {name, price, stock_quantity?, description?, sku?}; price in minor units."""
    product = products_service.create_product(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": product.id}), 201


@products_bp.put("/<product_id>")
@require_auth
@handle_service_errors("update product")
def update_product_route(product_id: str):
    product = products_service.update_product(g.claims, product_id, request.get_json(silent=True) or {})
    return jsonify(product.to_dict()), 200
