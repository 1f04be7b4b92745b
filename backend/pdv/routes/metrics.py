# Overview: Flask API routes for dashboard metrics.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import reporting_service
from ..services.permission_service import enforce, Target, READ
from ..validation import ValidationError, coerce_int
from ..decorators import require_auth, handle_service_errors


metrics_bp = Blueprint("metrics", __name__, url_prefix="/metrics")


def _int_arg(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return coerce_int(name, raw, minimum=minimum, maximum=maximum)
    except ValidationError:
        raise ValidationError(f"{name} must be an integer between {minimum} and {maximum}")


@metrics_bp.get("/overview")
@require_auth
@handle_service_errors("load metrics overview")
def overview_route():
    scope = enforce(g.claims, READ, Target("metrics"))
    return jsonify(reporting_service.overview(scope.value)), 200


@metrics_bp.get("/sales-trend")
@require_auth
@handle_service_errors("load sales trend")
def sales_trend_route():
    scope = enforce(g.claims, READ, Target("metrics"))
    days = _int_arg("days", 7, 1, reporting_service.MAX_TREND_DAYS)
    return jsonify(reporting_service.sales_trend(scope.value, days)), 200


@metrics_bp.get("/top-products")
@require_auth
@handle_service_errors("load top products")
def top_products_route():
    scope = enforce(g.claims, READ, Target("metrics"))
    limit = _int_arg("limit", 5, 1, 50)
    return jsonify(reporting_service.top_products(scope.value, limit)), 200


@metrics_bp.get("/inventory-alerts")
@require_auth
@handle_service_errors("load inventory alerts")
def inventory_alerts_route():
    scope = enforce(g.claims, READ, Target("metrics"))
    default_threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    threshold = _int_arg("threshold", default_threshold, 0, 1_000_000)
    return jsonify(reporting_service.inventory_alerts(scope.value, threshold)), 200
