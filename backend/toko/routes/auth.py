# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/toko/routes/auth.py
"""
Authentication API routes

- POST /api/auth/signup   register an owner account
- POST /api/auth/login    sign in, returns bearer token + landing route
- POST /api/auth/logout   revoke the current session
- GET  /api/auth/session  resolved principal + landing route
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import TokoError
from ..services import auth_service, gateway
from ..services.principal_service import resolve_landing_route

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    """
    Self-registration for store owners.

    The account is not usable until it is linked to an active tenant
    (tenant_id in the body, or assigned later by a super admin).
    """
    try:
        data = request.get_json() or {}
        email = data.get("email")
        password = data.get("password")
        full_name = data.get("full_name")

        if not all([email, password, full_name]):
            return jsonify({"error": "email, password and full_name required"}), 400

        user = auth_service.sign_up(email, password, full_name, tenant_id=data.get("tenant_id"))
        return jsonify({"user": user.to_dict()}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to sign up")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    try:
        data = request.get_json() or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user, token = auth_service.sign_in(email, password)
        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "redirect": resolve_landing_route(user.role),
        }), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the current session and drop its cart."""
    try:
        gateway.sign_out(g.token)
        return jsonify({"message": "Logged out", "redirect": "/"}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log out")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/session")
@require_auth
def session_route():
    principal = g.principal
    return jsonify({
        "principal": principal.to_dict(),
        "redirect": resolve_landing_route(principal.role),
    }), 200
