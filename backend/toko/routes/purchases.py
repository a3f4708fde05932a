# Overview: Flask API routes for purchases (stock received from suppliers).

# backend/toko/routes/purchases.py
"""Purchase API routes (owner only)"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..services import purchase_service

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
@require_roles("owner")
def list_purchases_route():
    purchases = purchase_service.list_purchases(g.principal.tenant_id)
    return jsonify({"purchases": [p.to_dict() for p in purchases]}), 200


@purchases_bp.post("")
@require_auth
@require_roles("owner")
def record_purchase_route():
    """
    Record a purchase and increment stock.

    Body: {supplier_id?, payment_status?, notes?, items: [{product_id, quantity, price?}]}
    """
    try:
        data = request.get_json() or {}
        purchase = purchase_service.record_purchase(
            g.principal.tenant_id,
            data.get("items"),
            supplier_id=data.get("supplier_id"),
            payment_status=data.get("payment_status", "belum_lunas"),
            notes=data.get("notes"),
        )
        return jsonify({
            "purchase": purchase.to_dict(),
            "items": [item.to_dict() for item in purchase.items],
        }), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record purchase")
        return jsonify({"error": "Internal server error"}), 500
