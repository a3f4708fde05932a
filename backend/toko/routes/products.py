# Overview: Flask API routes for products and suppliers; parses input and returns JSON responses.

# backend/toko/routes/products.py
"""
Stock (product) and supplier API routes

MULTI-TENANT: every query is scoped to g.principal.tenant_id. Products of
another tenant answer 404.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import TokoError
from ..services import inventory_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@products_bp.get("")
@require_auth
@require_roles("owner", "kasir")
def list_products_route():
    """List products. Optional ?q= filters by name or barcode."""
    products = inventory_service.list_products(g.principal.tenant_id, request.args.get("q"))
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/low-stock")
@require_auth
@require_roles("owner", "kasir")
def low_stock_route():
    limit = request.args.get("limit", default=5, type=int)
    products = inventory_service.list_low_stock(g.principal.tenant_id, limit=max(1, min(limit, 100)))
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_roles("owner", "kasir")
def get_product_route(product_id: int):
    try:
        product = inventory_service.get_product(g.principal.tenant_id, product_id)
        return jsonify({"product": product.to_dict()}), 200
    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code


@products_bp.post("")
@require_auth
@require_roles("owner")
def create_product_route():
    try:
        data = request.get_json() or {}
        product = inventory_service.create_product(g.principal.tenant_id, data)
        return jsonify({"product": product.to_dict()}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.patch("/<int:product_id>")
@require_auth
@require_roles("owner")
def update_product_route(product_id: int):
    try:
        data = request.get_json() or {}
        product = inventory_service.update_product(g.principal.tenant_id, product_id, data)
        return jsonify({"product": product.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_roles("owner")
def delete_product_route(product_id: int):
    try:
        inventory_service.delete_product(g.principal.tenant_id, product_id)
        return jsonify({"message": "Product deleted"}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.get("")
@require_auth
@require_roles("owner")
def list_suppliers_route():
    suppliers = inventory_service.list_suppliers(g.principal.tenant_id)
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200


@suppliers_bp.post("")
@require_auth
@require_roles("owner")
def create_supplier_route():
    try:
        data = request.get_json() or {}
        supplier = inventory_service.create_supplier(g.principal.tenant_id, data)
        return jsonify({"supplier": supplier.to_dict()}), 201

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.patch("/<int:supplier_id>")
@require_auth
@require_roles("owner")
def update_supplier_route(supplier_id: int):
    try:
        data = request.get_json() or {}
        supplier = inventory_service.update_supplier(g.principal.tenant_id, supplier_id, data)
        return jsonify({"supplier": supplier.to_dict()}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_roles("owner")
def delete_supplier_route(supplier_id: int):
    try:
        inventory_service.delete_supplier(g.principal.tenant_id, supplier_id)
        return jsonify({"message": "Supplier deleted"}), 200

    except TokoError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"error": "Internal server error"}), 500
