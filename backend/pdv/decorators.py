# Overview: Request decorators for API routes (bearer authentication, error mapping).

import logging
from functools import wraps

from flask import request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from .services.token_service import verify_token, AuthError
from .services.permission_service import AuthzError
from .services.auth_service import HashingError, InvalidCredentialsError
from .services.sales_service import SaleError, SaleStoreError
from .validation import ValidationError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def require_auth(f):
    """
    Require a valid bearer token and expose its claims as g.claims.

    Returns 401 before the view runs if the Authorization header is missing,
    is not a Bearer credential, or carries a token that fails verification.
    The failure kind is logged; the response is the same for every kind.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            claims = verify_token(
                token,
                current_app.config["JWT_SECRET"],
                algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
            )
        except AuthError as e:
            logger.info("Rejected bearer token on %s %s: %s", request.method, request.path, e.kind)
            return jsonify({"error": "Invalid or expired token"}), 401

        g.claims = claims
        return f(*args, **kwargs)

    return decorated_function


def store_error_message(exc: SQLAlchemyError) -> str:
    """One-line driver message without statement text or traceback."""
    detail = str(getattr(exc, "orig", None) or exc.__class__.__name__)
    return f"Database error: {detail.splitlines()[0] if detail else exc.__class__.__name__}"


def handle_service_errors(action: str):
    """
    Translate service exceptions into JSON error responses.

    action is used in the log line for unexpected failures ("Failed to <action>").
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except AuthError:
                return jsonify({"error": "Invalid or expired token"}), 401
            except InvalidCredentialsError as e:
                return jsonify({"error": str(e)}), 401
            except AuthzError as e:
                return jsonify({"error": str(e), "reason": e.reason}), 403
            except ConflictError as e:
                return jsonify({"error": str(e), "reason": e.reason}), 409
            except ValidationError as e:
                return jsonify({"error": str(e)}), 400
            except NotFoundError as e:
                return jsonify({"error": str(e)}), 404
            except HashingError:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Failed to hash password"}), 500
            except SaleStoreError as e:
                return jsonify({"error": str(e)}), 500
            except SaleError as e:
                return jsonify({"error": str(e), "details": e.details}), 400
            except SQLAlchemyError as e:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": store_error_message(e)}), 500
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function
    return decorator
