# Overview: Pytest coverage for accounts, cashier management and tenant administration.

"""
Account & Tenant Administration Tests

- sign-up / sign-in rules (password length, unique email, tenant must be active)
- cashier management is confined to the owner's tenant
- deactivating a tenant revokes every session of its users
- deleting a tenant removes all of its rows and nothing else
"""

import pytest

from toko import models
from toko.errors import AuthenticationFailure, ConflictError, NotFound, TenantInactive, ValidationError
from toko.extensions import carts
from toko.models import Product, Sale, SessionToken, Supplier, Tenant, User
from toko.services import auth_service, checkout_service, session_service, tenant_service
from toko.services.cart import Cart

from conftest import PASSWORD, open_session, principal_for


class TestModelVocabulary:
    def test_allowed_values_exported(self):
        assert models.ROLES == ("super_admin", "owner", "kasir")
        assert models.TENANT_STATUSES == ("active", "inactive")
        assert models.PAYMENT_METHODS == ("cash", "qris", "ewallet")
        assert models.PURCHASE_PAYMENT_STATUSES == ("lunas", "belum_lunas", "sebagian")
        assert {"ROLES", "TENANT_STATUSES", "PAYMENT_METHODS", "PURCHASE_PAYMENT_STATUSES"} <= set(models.__all__)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = auth_service.hash_password("rahasia")
        assert hashed != "rahasia"
        assert auth_service.verify_password("rahasia", hashed)
        assert not auth_service.verify_password("salah!", hashed)

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            auth_service.hash_password("12345")

    def test_malformed_hash(self):
        assert not auth_service.verify_password("rahasia", "not-a-bcrypt-hash")


class TestSignUp:
    def test_owner_with_tenant(self, db_session, tenant_a):
        user = auth_service.sign_up("Baru@Toko.Local ", "rahasia", "Pemilik Baru", tenant_id=tenant_a.id)

        assert user.email == "baru@toko.local"
        assert user.role == "owner"
        assert user.tenant_id == tenant_a.id

    def test_owner_without_tenant(self, db_session):
        user = auth_service.sign_up("solo@toko.local", "rahasia", "Solo")
        assert user.tenant_id is None

    def test_duplicate_email(self, db_session, owner_a):
        with pytest.raises(ConflictError):
            auth_service.sign_up("OWNER_A@toko.local", "rahasia", "Duplikat")

    def test_invalid_email(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.sign_up("bukan-email", "rahasia", "X")

    def test_missing_name(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.sign_up("x@toko.local", "rahasia", "   ")

    def test_unknown_tenant(self, db_session):
        with pytest.raises(NotFound):
            auth_service.sign_up("x@toko.local", "rahasia", "X", tenant_id=999)

    def test_inactive_tenant(self, db_session, tenant_a):
        tenant_a.status = "inactive"
        db_session.commit()
        with pytest.raises(TenantInactive):
            auth_service.sign_up("x@toko.local", "rahasia", "X", tenant_id=tenant_a.id)

    def test_kasir_requires_tenant(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.sign_up("k@toko.local", "rahasia", "Kasir", role="kasir")

    def test_super_admin_never_has_tenant(self, db_session, tenant_a):
        user = auth_service.sign_up("root@toko.local", "rahasia", "Root", tenant_id=tenant_a.id, role="super_admin")
        assert user.tenant_id is None

    def test_unknown_role(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.sign_up("x@toko.local", "rahasia", "X", role="manager")


class TestSignIn:
    def test_success_creates_session(self, db_session, owner_a):
        user, token = auth_service.sign_in("OWNER_A@toko.local", PASSWORD)

        assert user.id == owner_a.id
        assert user.last_login_at is not None
        assert session_service.validate_session(token).user_id == owner_a.id

    def test_wrong_password(self, db_session, owner_a):
        with pytest.raises(AuthenticationFailure):
            auth_service.sign_in(owner_a.email, "salah-sekali")

    def test_unknown_email(self, db_session):
        with pytest.raises(AuthenticationFailure):
            auth_service.sign_in("nobody@toko.local", PASSWORD)

    def test_disabled_user(self, db_session, owner_a):
        owner_a.is_active = False
        db_session.commit()
        with pytest.raises(AuthenticationFailure):
            auth_service.sign_in(owner_a.email, PASSWORD)

    def test_inactive_tenant_gets_no_session(self, db_session, kasir_a, tenant_a):
        tenant_a.status = "inactive"
        db_session.commit()

        with pytest.raises(TenantInactive):
            auth_service.sign_in(kasir_a.email, PASSWORD)
        assert db_session.query(SessionToken).count() == 0

    def test_super_admin_without_tenant(self, db_session, super_admin):
        user, token = auth_service.sign_in(super_admin.email, PASSWORD)
        assert user.tenant_id is None
        assert token


class TestCashiers:
    def test_create_in_owner_tenant(self, db_session, owner_a, tenant_a):
        cashier = auth_service.create_cashier(principal_for(owner_a), "kasir2@toko.local", "rahasia", "Kasir Dua")

        assert cashier.role == "kasir"
        assert cashier.tenant_id == tenant_a.id
        assert [c.id for c in auth_service.list_cashiers(tenant_a.id)] == [cashier.id]

    def test_list_excludes_other_tenants(self, db_session, kasir_a, owner_b, tenant_b):
        assert auth_service.list_cashiers(tenant_b.id) == []

    def test_delete_revokes_access(self, db_session, kasir_a, tenant_a, product_a):
        session_id, token = open_session(kasir_a)
        carts.get(session_id).add_item(product_a)

        auth_service.delete_cashier(tenant_a.id, kasir_a.id)

        assert db_session.query(User).filter_by(email="kasir_a@toko.local").first() is None
        assert db_session.query(SessionToken).count() == 0
        assert carts.get(session_id).is_empty
        assert session_service.validate_session(token) is None

    def test_cannot_delete_other_tenant_cashier(self, db_session, kasir_a, tenant_b):
        with pytest.raises(NotFound):
            auth_service.delete_cashier(tenant_b.id, kasir_a.id)

    def test_cannot_delete_owner_as_cashier(self, db_session, owner_a, tenant_a):
        with pytest.raises(NotFound):
            auth_service.delete_cashier(tenant_a.id, owner_a.id)


class TestProfile:
    def test_update_fields(self, db_session, owner_a):
        user = auth_service.update_profile(
            owner_a.id, full_name=" Ibu Sari ", phone="0813", address="Jl. Melati 5"
        )
        assert user.full_name == "Ibu Sari"
        assert user.phone == "0813"
        assert user.address == "Jl. Melati 5"

    def test_email_must_stay_unique(self, db_session, owner_a, kasir_a):
        with pytest.raises(ConflictError):
            auth_service.update_profile(owner_a.id, email=kasir_a.email)

    def test_keep_own_email(self, db_session, owner_a):
        user = auth_service.update_profile(owner_a.id, email=owner_a.email)
        assert user.email == "owner_a@toko.local"


class TestTenantAdministration:
    def test_create_and_stats(self, db_session, tenant_a):
        tenant = tenant_service.create_tenant("  Toko Baru ", subdomain="Toko-Baru")

        assert tenant.name == "Toko Baru"
        assert tenant.subdomain == "toko-baru"
        assert tenant.status == "active"
        assert tenant_service.tenant_stats() == {"total": 2, "active": 2, "inactive": 0}

    def test_duplicate_subdomain(self, db_session, tenant_a):
        with pytest.raises(ConflictError):
            tenant_service.create_tenant("Lain", subdomain="TOKO-A")

    def test_rename_keeps_own_subdomain(self, db_session, tenant_a):
        tenant = tenant_service.update_tenant(tenant_a.id, name="Toko A Baru", subdomain="toko-a")
        assert tenant.name == "Toko A Baru"

    def test_list_with_owners(self, db_session, tenant_a, tenant_b, owner_a):
        tenants = {t["id"]: t for t in tenant_service.list_tenants_with_owners()}

        assert tenants[tenant_a.id]["owner"]["email"] == "owner_a@toko.local"
        assert tenants[tenant_b.id]["owner"] is None

    def test_deactivate_revokes_all_sessions(self, db_session, tenant_a, owner_a, kasir_a, owner_b):
        owner_session, _ = open_session(owner_a)
        kasir_session, kasir_token = open_session(kasir_a)
        other_session, _ = open_session(owner_b)

        tenant_service.set_tenant_status(tenant_a.id, "inactive")

        assert db_session.get(SessionToken, owner_session).is_revoked
        assert db_session.get(SessionToken, kasir_session).is_revoked
        assert not db_session.get(SessionToken, other_session).is_revoked
        assert session_service.validate_session(kasir_token) is None
        assert tenant_service.tenant_stats()["inactive"] == 1

    def test_toggle(self, db_session, tenant_a):
        assert tenant_service.toggle_tenant_status(tenant_a.id).status == "inactive"
        assert tenant_service.toggle_tenant_status(tenant_a.id).status == "active"

    def test_invalid_status(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            tenant_service.set_tenant_status(tenant_a.id, "suspended")

    def test_delete_removes_everything(self, db_session, tenant_a, tenant_b, kasir_a, owner_b,
                                       product_a, foreign_product, supplier_a):
        tenant_a_id = tenant_a.id
        open_session(kasir_a)
        cart = Cart()
        cart.add_item(product_a)
        checkout_service.commit(principal_for(kasir_a), cart, "qris")

        tenant_service.delete_tenant(tenant_a_id)

        assert db_session.get(Tenant, tenant_a_id) is None
        assert db_session.query(User).filter_by(tenant_id=tenant_a_id).count() == 0
        assert db_session.query(Product).filter_by(tenant_id=tenant_a_id).count() == 0
        assert db_session.query(Supplier).filter_by(tenant_id=tenant_a_id).count() == 0
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SessionToken).count() == 0

        # Other tenant untouched
        assert db_session.get(Tenant, tenant_b.id) is not None
        assert db_session.query(Product).filter_by(tenant_id=tenant_b.id).count() == 1

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFound):
            tenant_service.delete_tenant(12345)
