# Overview: Flask API routes for the point of sale; catalog, cart, checkout and receipts.

# backend/toko/routes/pos.py
"""
POS API routes

The cart lives in process memory, one per session (g.session_id). The
principal resolved by @require_auth is passed explicitly to the cart and
checkout code; tenant and user are never re-read below the gate.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..extensions import carts
from ..models import Sale
from ..money import money_str
from ..services import checkout_service, inventory_service
from ..services.tenant_service import get_tenant_scoped

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")
sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _catalog_entry(product: dict) -> dict:
    return dict(product, sell_price=money_str(product["sell_price"]))


@pos_bp.get("/catalog")
@require_auth
@require_roles("owner", "kasir")
def catalog_route():
    """Products in stock; ?q= matches name or barcode."""
    try:
        products = inventory_service.search_catalog(g.principal.tenant_id, request.args.get("q"))
        return jsonify({"products": [_catalog_entry(p) for p in products]}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code


@pos_bp.get("/cart")
@require_auth
@require_roles("owner", "kasir")
def get_cart_route():
    try:
        return jsonify({"cart": carts.get(g.session_id).to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to load cart")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/cart")
@require_auth
@require_roles("owner", "kasir")
def clear_cart_route():
    try:
        cart = carts.get(g.session_id)
        cart.clear()
        return jsonify({"cart": cart.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/cart/items")
@require_auth
@require_roles("owner", "kasir")
def add_cart_item_route():
    """
    Add one unit of a product to the cart.

    The product (and its current stock) is read from the caller's tenant.
    """
    try:
        data = request.get_json() or {}
        product_id = data.get("product_id")
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            return jsonify({"error": "product_id required"}), 400

        product = inventory_service.get_product(g.principal.tenant_id, product_id)
        cart = carts.get(g.session_id)
        cart.add_item(product)
        return jsonify({"cart": cart.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.patch("/cart/items/<int:product_id>")
@require_auth
@require_roles("owner", "kasir")
def adjust_cart_item_route(product_id: int):
    """Body: {"delta": <int>}"""
    try:
        data = request.get_json() or {}
        cart = carts.get(g.session_id)
        cart.adjust_quantity(product_id, data.get("delta"))
        return jsonify({"cart": cart.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/cart/items/<int:product_id>")
@require_auth
@require_roles("owner", "kasir")
def remove_cart_item_route(product_id: int):
    try:
        cart = carts.get(g.session_id)
        cart.remove_item(product_id)
        return jsonify({"cart": cart.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/checkout")
@require_auth
@require_roles("owner", "kasir")
def checkout_route():
    """
    Commit the session cart as a sale.

    Body: {"payment_method": "cash"|"qris"|"ewallet", "amount_received": "50000"}
    amount_received is required for cash only. The cart is cleared on
    success and kept intact on any failure.
    """
    try:
        data = request.get_json() or {}
        receipt = checkout_service.checkout_cart(
            g.principal,
            data.get("payment_method"),
            data.get("amount_received"),
        )
        return jsonify({"receipt": receipt}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to check out")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
@require_roles("owner", "kasir")
def receipt_route(sale_id: int):
    try:
        sale = get_tenant_scoped(Sale, sale_id, g.principal.tenant_id, "Transaksi")
        return jsonify({"receipt": checkout_service.build_receipt(sale)}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
