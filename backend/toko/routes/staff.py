# Overview: Flask API routes for cashier management (owner only).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..services import auth_service

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("/cashiers")
@require_auth
@require_roles("owner")
def list_cashiers_route():
    cashiers = auth_service.list_cashiers(g.principal.tenant_id)
    return jsonify({"cashiers": [c.to_dict() for c in cashiers]}), 200


@staff_bp.post("/cashiers")
@require_auth
@require_roles("owner")
def create_cashier_route():
    """Body: {email, password (min 6 chars), full_name, phone?, address?}"""
    try:
        data = request.get_json() or {}
        email = data.get("email")
        password = data.get("password")
        full_name = data.get("full_name")

        if not all([email, password, full_name]):
            return jsonify({"error": "email, password and full_name required"}), 400

        cashier = auth_service.create_cashier(
            g.principal,
            email,
            password,
            full_name,
            phone=data.get("phone"),
            address=data.get("address"),
        )
        return jsonify({"cashier": cashier.to_dict()}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create cashier")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.delete("/cashiers/<int:user_id>")
@require_auth
@require_roles("owner")
def delete_cashier_route(user_id: int):
    try:
        auth_service.delete_cashier(g.principal.tenant_id, user_id)
        return jsonify({"message": "Cashier deleted"}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete cashier")
        return jsonify({"error": "Internal server error"}), 500
