# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two stores with separate owners, then verify that:
1. A user of Toko A cannot read or write data of Toko B
2. Foreign ids answer 404 (not 403, which would reveal existence)
3. Lists only ever contain the caller's own rows

Test Coverage:
- Products: cross-tenant read/write blocked
- Suppliers: cross-tenant update blocked
- Cart: foreign product cannot be added
- Sales: cross-tenant receipt read blocked
"""

import pytest

from toko.errors import NotFound
from toko.models import Product, Supplier
from toko.services import checkout_service, inventory_service
from toko.services.cart import Cart
from toko.services.tenant_service import get_tenant_scoped

from conftest import make_product, principal_for


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_get_tenant_scoped_own_row(self, db_session, tenant_a, product_a):
        result = get_tenant_scoped(Product, product_a.id, tenant_a.id)
        assert result.id == product_a.id

    def test_get_tenant_scoped_foreign_row(self, db_session, tenant_a, foreign_product):
        with pytest.raises(NotFound):
            get_tenant_scoped(Product, foreign_product.id, tenant_a.id, "Produk")

    def test_get_tenant_scoped_nonexistent(self, db_session, tenant_a):
        with pytest.raises(NotFound):
            get_tenant_scoped(Product, 99999, tenant_a.id)


class TestServiceScoping:
    def test_list_products_only_own(self, db_session, tenant_a, tenant_b, product_a, foreign_product):
        names = [p.name for p in inventory_service.list_products(tenant_a.id)]
        assert names == ["Product A"]

    def test_catalog_only_own(self, db_session, tenant_a, product_a, foreign_product):
        ids = [p["id"] for p in inventory_service.search_catalog(tenant_a.id)]
        assert ids == [product_a.id]

    def test_catalog_search_only_own(self, db_session, tenant_a, tenant_b, product_a):
        make_product(db_session, tenant_b, "Product A lookalike", "1000", 4)
        results = inventory_service.search_catalog(tenant_a.id, "product a")
        assert [p["id"] for p in results] == [product_a.id]

    def test_update_foreign_product(self, db_session, tenant_a, foreign_product):
        with pytest.raises(NotFound):
            inventory_service.update_product(tenant_a.id, foreign_product.id, {"name": "Hijacked"})
        assert db_session.get(Product, foreign_product.id).name == "Produk Tenant B"

    def test_delete_foreign_supplier(self, db_session, tenant_a, tenant_b):
        foreign = Supplier(tenant_id=tenant_b.id, name="Supplier B")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(NotFound):
            inventory_service.delete_supplier(tenant_a.id, foreign.id)
        assert db_session.get(Supplier, foreign.id) is not None

    def test_same_barcode_allowed_in_different_tenants(self, db_session, tenant_a, tenant_b, product_a):
        other = inventory_service.create_product(
            tenant_b.id, {"name": "Sama", "barcode": "A-001", "sell_price": "1000"}
        )
        assert other.barcode == product_a.barcode


class TestProductRoutesIsolation:
    def test_list_only_own_products(self, client, owner_headers, product_a, foreign_product):
        resp = client.get("/api/products", headers=owner_headers)
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json["products"]] == [product_a.id]

    def test_get_foreign_product_404(self, client, owner_headers, foreign_product):
        resp = client.get(f"/api/products/{foreign_product.id}", headers=owner_headers)
        assert resp.status_code == 404

    def test_patch_foreign_product_404(self, client, owner_headers, foreign_product):
        resp = client.patch(
            f"/api/products/{foreign_product.id}",
            json={"sell_price": "1"},
            headers=owner_headers,
        )
        assert resp.status_code == 404

    def test_delete_foreign_product_404(self, client, owner_headers, foreign_product, db_session):
        resp = client.delete(f"/api/products/{foreign_product.id}", headers=owner_headers)
        assert resp.status_code == 404
        assert db_session.get(Product, foreign_product.id) is not None


class TestPosIsolation:
    def test_cannot_add_foreign_product_to_cart(self, client, kasir_headers, foreign_product):
        resp = client.post("/api/pos/cart/items", json={"product_id": foreign_product.id}, headers=kasir_headers)
        assert resp.status_code == 404

        cart = client.get("/api/pos/cart", headers=kasir_headers).json["cart"]
        assert cart["items"] == []

    def test_cannot_read_foreign_receipt(self, client, db_session, owner_b, tenant_b, kasir_headers):
        product = make_product(db_session, tenant_b, "Teh", "4000", 3)
        cart = Cart()
        cart.add_item(product)
        sale = checkout_service.commit(principal_for(owner_b), cart, "qris")

        resp = client.get(f"/api/sales/{sale.id}/receipt", headers=kasir_headers)
        assert resp.status_code == 404
