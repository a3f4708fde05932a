# Overview: Pytest coverage for session resolution and route admission.

"""
Session & Role Resolver Tests

SECURITY TESTS: the gate must fail closed.
- inactive or missing tenant is DENIED and the session is revoked
- repeated transient lookup failures are INDETERMINATE, never admitted
- landing routes per role
"""

import pytest
from sqlalchemy.exc import OperationalError

from toko.errors import LookupFailed, RoleForbidden, TransientLookupError
from toko.extensions import carts, db
from toko.models import SessionToken
from toko.services import gateway, session_service
from toko.services.principal_service import (
    DEFAULT_LANDING,
    PUBLIC_LANDING,
    ResolutionStatus,
    SessionResolution,
    admit_route,
    require_role,
    resolve_landing_route,
    resolve_session,
)

from conftest import make_user, open_session, principal_for


class TestResolveSession:
    def test_no_token(self, db_session):
        assert resolve_session(None).status is ResolutionStatus.UNAUTHENTICATED

    def test_unknown_token(self, db_session):
        assert resolve_session("not-a-real-token").status is ResolutionStatus.UNAUTHENTICATED

    def test_revoked_token(self, db_session, owner_a):
        _, token = open_session(owner_a)
        session_service.revoke_session(token)

        assert resolve_session(token).status is ResolutionStatus.UNAUTHENTICATED

    def test_owner_of_active_tenant(self, db_session, owner_a, tenant_a):
        session_id, token = open_session(owner_a)
        resolution = resolve_session(token)

        assert resolution.status is ResolutionStatus.AUTHENTICATED
        principal = resolution.principal
        assert principal.user_id == owner_a.id
        assert principal.role == "owner"
        assert principal.tenant_id == tenant_a.id
        assert principal.tenant_status == "active"
        assert principal.session_id == session_id
        assert principal.full_name == "Owner A"

    def test_super_admin_has_no_tenant(self, db_session, super_admin):
        _, token = open_session(super_admin)
        resolution = resolve_session(token)

        assert resolution.status is ResolutionStatus.AUTHENTICATED
        assert resolution.principal.tenant_id is None
        assert resolution.principal.is_super_admin

    def test_inactive_tenant_is_denied_and_signed_out(self, db_session, kasir_a, tenant_a, product_a):
        session_id, token = open_session(kasir_a)
        carts.get(session_id).add_item(product_a)

        tenant_a.status = "inactive"
        db_session.commit()

        resolution = resolve_session(token)
        assert resolution.status is ResolutionStatus.DENIED
        assert resolution.reason == "tenant_inactive"
        assert resolution.principal.tenant_status == "inactive"

        session = db_session.get(SessionToken, session_id)
        assert session.is_revoked
        assert session.revoked_reason == "Tenant deactivated"
        assert carts.get(session_id).is_empty

        # The revoked session cannot come back
        assert resolve_session(token).status is ResolutionStatus.UNAUTHENTICATED

    def test_user_without_tenant_is_denied(self, db_session, password_hash):
        orphan = make_user(db_session, password_hash, "baru@toko.local", "owner")
        _, token = open_session(orphan)

        resolution = resolve_session(token)
        assert resolution.status is ResolutionStatus.DENIED
        assert resolution.reason == "tenant_missing"

    def test_missing_record_is_denied(self, db_session, owner_a, monkeypatch):
        _, token = open_session(owner_a)

        def missing(tenant_id):
            raise LookupFailed("Gagal memuat data tenant")

        monkeypatch.setattr(gateway, "get_tenant", missing)

        resolution = resolve_session(token)
        assert resolution.status is ResolutionStatus.DENIED
        assert resolution.reason == "record_missing"


class TestFailClosed:
    def test_persistent_transient_errors_are_indeterminate(self, db_session, owner_a, monkeypatch):
        session_id, token = open_session(owner_a)
        calls = []

        def unavailable(user_id):
            calls.append(user_id)
            raise TransientLookupError("Backend temporarily unavailable")

        monkeypatch.setattr(gateway, "get_user_record", unavailable)

        resolution = resolve_session(token)
        assert resolution.status is ResolutionStatus.INDETERMINATE
        assert resolution.principal is None
        assert len(calls) == 3

        # Not signed out: the caller may retry
        assert not db_session.get(SessionToken, session_id).is_revoked

    def test_transient_error_then_success(self, db_session, owner_a, monkeypatch):
        _, token = open_session(owner_a)
        original = gateway.get_user_record
        calls = []

        def flaky(user_id):
            calls.append(user_id)
            if len(calls) == 1:
                raise TransientLookupError("Backend temporarily unavailable")
            return original(user_id)

        monkeypatch.setattr(gateway, "get_user_record", flaky)

        assert resolve_session(token).status is ResolutionStatus.AUTHENTICATED
        assert len(calls) == 2

    def test_operational_error_maps_to_transient(self, db_session, owner_a, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db.session, "get", broken)

        with pytest.raises(TransientLookupError):
            gateway.get_user_record(owner_a.id)


class TestAdmitRoute:
    def test_authenticated_is_admitted(self, owner_a):
        decision = admit_route(SessionResolution(ResolutionStatus.AUTHENTICATED, principal_for(owner_a)))
        assert decision.admit
        assert decision.redirect_to is None

    def test_unauthenticated_goes_to_landing(self):
        decision = admit_route(SessionResolution(ResolutionStatus.UNAUTHENTICATED))
        assert not decision.admit
        assert decision.redirect_to == PUBLIC_LANDING
        assert not decision.sign_out

    def test_denied_signs_out(self):
        decision = admit_route(SessionResolution(ResolutionStatus.DENIED, reason="tenant_inactive"))
        assert not decision.admit
        assert decision.redirect_to == PUBLIC_LANDING
        assert decision.sign_out

    def test_indeterminate_is_never_admitted(self):
        decision = admit_route(SessionResolution(ResolutionStatus.INDETERMINATE))
        assert not decision.admit
        assert decision.redirect_to == PUBLIC_LANDING


class TestLandingRoutes:
    @pytest.mark.parametrize("role,route", [
        ("super_admin", "/superadmin/dashboard"),
        ("owner", "/owner/dashboard"),
        ("kasir", "/kasir/dashboard"),
    ])
    def test_known_roles(self, role, route):
        assert resolve_landing_route(role) == route

    @pytest.mark.parametrize("role", [None, "", "manager"])
    def test_unknown_role_defaults_to_owner_dashboard(self, role):
        assert resolve_landing_route(role) == DEFAULT_LANDING


class TestRequireRole:
    def test_allowed(self, db_session, kasir_a):
        require_role(principal_for(kasir_a), "owner", "kasir")

    def test_forbidden(self, db_session, kasir_a):
        with pytest.raises(RoleForbidden) as exc:
            require_role(principal_for(kasir_a), "owner")
        assert exc.value.details["required_roles"] == ["owner"]
