# Overview: Flask API routes for super-admin tenant administration.

# backend/toko/routes/superadmin.py
"""Tenant administration API routes (super_admin only)"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..services import tenant_service

superadmin_bp = Blueprint("superadmin", __name__, url_prefix="/api/superadmin")


@superadmin_bp.get("/tenants")
@require_auth
@require_roles("super_admin")
def list_tenants_route():
    """All tenants with their owners, plus totals per status."""
    try:
        return jsonify({
            "tenants": tenant_service.list_tenants_with_owners(),
            "stats": tenant_service.tenant_stats(),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list tenants")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.post("/tenants")
@require_auth
@require_roles("super_admin")
def create_tenant_route():
    try:
        data = request.get_json() or {}
        if not data.get("name"):
            return jsonify({"error": "name required"}), 400

        tenant = tenant_service.create_tenant(data["name"], subdomain=data.get("subdomain"))
        return jsonify({"tenant": tenant.to_dict()}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create tenant")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.patch("/tenants/<int:tenant_id>")
@require_auth
@require_roles("super_admin")
def update_tenant_route(tenant_id: int):
    """
    Update name/subdomain and optionally status.

    Setting status to "inactive" signs out every user of the tenant.
    """
    try:
        data = request.get_json() or {}
        tenant = tenant_service.update_tenant(
            tenant_id, name=data.get("name"), subdomain=data.get("subdomain")
        )
        if "status" in data:
            tenant = tenant_service.set_tenant_status(tenant_id, data["status"])
        return jsonify({"tenant": tenant.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update tenant")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.post("/tenants/<int:tenant_id>/toggle")
@require_auth
@require_roles("super_admin")
def toggle_tenant_route(tenant_id: int):
    try:
        tenant = tenant_service.toggle_tenant_status(tenant_id)
        return jsonify({"tenant": tenant.to_dict()}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle tenant status")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.delete("/tenants/<int:tenant_id>")
@require_auth
@require_roles("super_admin")
def delete_tenant_route(tenant_id: int):
    """Delete a tenant and all of its data."""
    try:
        tenant_service.delete_tenant(tenant_id)
        return jsonify({"message": "Tenant deleted"}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete tenant")
        return jsonify({"error": "Internal server error"}), 500
