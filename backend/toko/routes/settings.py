# Overview: Flask API routes for profile and store settings.

# backend/toko/routes/settings.py
"""
Settings API routes

- GET/PATCH /api/settings/profile  any signed-in user
- GET/PATCH /api/settings/tenant   owner: store name / subdomain
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..extensions import db
from ..models import User
from ..services import auth_service, tenant_service

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/profile")
@require_auth
def get_profile_route():
    user = db.session.get(User, g.principal.user_id)
    return jsonify({"user": user.to_dict()}), 200


@settings_bp.patch("/profile")
@require_auth
def update_profile_route():
    try:
        data = request.get_json() or {}
        user = auth_service.update_profile(
            g.principal.user_id,
            full_name=data.get("full_name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
        return jsonify({"user": user.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.get("/tenant")
@require_auth
@require_roles("owner")
def get_tenant_route():
    try:
        tenant = tenant_service.get_tenant(g.principal.tenant_id)
        return jsonify({"tenant": tenant.to_dict()}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code


@settings_bp.patch("/tenant")
@require_auth
@require_roles("owner")
def update_tenant_route():
    """Owners may rename their store; status stays with the super admin."""
    try:
        data = request.get_json() or {}
        tenant = tenant_service.update_tenant(
            g.principal.tenant_id, name=data.get("name"), subdomain=data.get("subdomain")
        )
        return jsonify({"tenant": tenant.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update tenant settings")
        return jsonify({"error": "Internal server error"}), 500
