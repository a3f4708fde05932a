# Overview: Flask API routes for the owner and kasir dashboards.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_roles
from ..services import reporting_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/owner")
@require_auth
@require_roles("owner")
def owner_dashboard_route():
    try:
        return jsonify(reporting_service.owner_dashboard(g.principal.tenant_id)), 200
    except Exception:
        current_app.logger.exception("Failed to load owner dashboard")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/kasir")
@require_auth
@require_roles("kasir")
def kasir_dashboard_route():
    try:
        return jsonify(reporting_service.kasir_dashboard(g.principal)), 200
    except Exception:
        current_app.logger.exception("Failed to load kasir dashboard")
        return jsonify({"error": "Internal server error"}), 500
