# Overview: Flask API routes for customers; tenant-scoped list and create.

from flask import Blueprint, request, jsonify, g

from ..services import customers_service
from ..decorators import require_auth, handle_service_errors

customers_bp = Blueprint("customers", __name__, url_prefix="/customers")


@customers_bp.get("")
@require_auth
@handle_service_errors("list customers")
def list_customers_route():
    return jsonify([c.to_dict() for c in customers_service.list_customers(g.claims)]), 200


@customers_bp.post("")
@require_auth
@handle_service_errors("create customer")
def create_customer_route():
    customer = customers_service.create_customer(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": customer.id}), 201
