# Overview: Flask API routes for the admin namespace (tenants, resellers, users, plans).

# backend/pdv/routes/admin.py
"""
Admin routes.

Authorization is decided per call by permission_service from the bearer
claims: admins see everything, resellers only their own tenants (and the
plan list), plain users nothing.
"""

from flask import Blueprint, request, jsonify, g

from ..services import tenant_service, user_service, plan_service
from ..decorators import require_auth, handle_service_errors


admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# =============================================================================
# TENANTS
# =============================================================================

@admin_bp.post("/tenants")
@require_auth
@handle_service_errors("create tenant")
def create_tenant_route():
    """Body: {name, plan_id?, business_type?, status?, custom_fields?, reseller_id?, owner_email?, owner_password?}"""
    tenant = tenant_service.create_tenant(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": tenant.id}), 201


@admin_bp.get("/tenants")
@require_auth
@handle_service_errors("list tenants")
def list_tenants_route():
    tenants = tenant_service.list_tenants(g.claims)
    return jsonify([t.to_dict() for t in tenants]), 200


@admin_bp.put("/tenants/<tenant_id>")
@require_auth
@handle_service_errors("update tenant")
def update_tenant_route(tenant_id: str):
    """Partial update: only fields present in the body are changed."""
    tenant = tenant_service.update_tenant(g.claims, tenant_id, request.get_json(silent=True) or {})
    return jsonify(tenant.to_dict()), 200


@admin_bp.delete("/tenants/<tenant_id>")
@require_auth
@handle_service_errors("delete tenant")
def delete_tenant_route(tenant_id: str):
    tenant_service.delete_tenant(g.claims, tenant_id)
    return "", 204


# =============================================================================
# RESELLERS
# =============================================================================

@admin_bp.post("/resellers")
@require_auth
@handle_service_errors("create reseller")
def create_reseller_route():
    user = user_service.create_reseller(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": user.id}), 201


@admin_bp.get("/resellers")
@require_auth
@handle_service_errors("list resellers")
def list_resellers_route():
    return jsonify([u.to_dict() for u in user_service.list_resellers(g.claims)]), 200


# =============================================================================
# USERS
# =============================================================================

@admin_bp.post("/users")
@require_auth
@handle_service_errors("create user")
def create_user_route():
    """Body: {email, password, role?, tenant_id?}"""
    user = user_service.create_user(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": user.id}), 201


@admin_bp.get("/users")
@require_auth
@handle_service_errors("list users")
def list_users_route():
    return jsonify([u.to_dict() for u in user_service.list_users(g.claims)]), 200


@admin_bp.put("/users/<user_id>")
@require_auth
@handle_service_errors("update user")
def update_user_route(user_id: str):
    """Body: {email?, role?, tenant_id?, password?}; an empty password keeps the current one."""
    user = user_service.update_user(g.claims, user_id, request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 200


@admin_bp.delete("/users/<user_id>")
@require_auth
@handle_service_errors("delete user")
def delete_user_route(user_id: str):
    user_service.delete_user(g.claims, user_id)
    return "", 204


# =============================================================================
# PLANS
# =============================================================================

@admin_bp.post("/plans")
@require_auth
@handle_service_errors("create plan")
def create_plan_route():
    plan = plan_service.create_plan(g.claims, request.get_json(silent=True) or {})
    return jsonify({"id": plan.id}), 201


@admin_bp.get("/plans")
@require_auth
@handle_service_errors("list plans")
def list_plans_route():
    return jsonify([p.to_dict() for p in plan_service.list_plans(g.claims)]), 200
