# Overview: Flask API routes for registration and login.

# backend/pdv/routes/auth.py
"""Authentication routes (public: no bearer token required)."""

from datetime import timedelta

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..validation import require_payload
from ..decorators import handle_service_errors


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
@handle_service_errors("register user")
def register_route():
    """
    Self-service registration.

    Body: {email, password, role?}. Only roles allowed by
    REGISTRATION_ALLOWED_ROLES may be requested.
    """
    data = require_payload(request.get_json(silent=True) or {})
    user = auth_service.register(
        data.get("email"),
        data.get("password"),
        role=data.get("role"),
        allowed_roles=frozenset(current_app.config["REGISTRATION_ALLOWED_ROLES"]),
    )
    return jsonify({"message": "User created successfully", "id": user.id}), 201


@auth_bp.post("/login")
@handle_service_errors("login user")
def login_route():
    """
    Login with email and password.

    Returns {token, role, business_type, email, name}; 401 on bad credentials.
    """
    data = require_payload(request.get_json(silent=True) or {})
    result = auth_service.login(
        data.get("email"),
        data.get("password"),
        secret=current_app.config["JWT_SECRET"],
        ttl=timedelta(hours=current_app.config["TOKEN_TTL_HOURS"]),
        algorithm=current_app.config["JWT_ALGORITHM"],
    )
    return jsonify(result), 200
