# Overview: Session & role resolver; gates every protected route.

"""
Session & Role Resolver

Turns a bearer token into a tagged SessionResolution:

    AUTHENTICATED    principal resolved, tenant active (or super admin)
    UNAUTHENTICATED  no token, or token unknown / expired / revoked
    DENIED           authenticated but not admissible (tenant inactive, no tenant)
    INDETERMINATE    lookups kept failing after bounded retries

SECURITY: the gate fails closed. INDETERMINATE is never admitted; callers
get a "try again" answer instead of silently passing through.

The resolved Principal is immutable and is threaded explicitly into the
cart and checkout code; nothing below the gate re-reads role or tenant.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from flask import current_app

from ..errors import LookupFailed, RoleForbidden, TransientLookupError
from ..extensions import carts
from . import gateway, session_service

SUPER_ADMIN = "super_admin"
OWNER = "owner"
KASIR = "kasir"

PUBLIC_LANDING = "/"

LANDING_ROUTES = {
    SUPER_ADMIN: "/superadmin/dashboard",
    OWNER: "/owner/dashboard",
    KASIR: "/kasir/dashboard",
}
DEFAULT_LANDING = LANDING_ROUTES[OWNER]


class ResolutionStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    DENIED = "denied"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str
    tenant_id: int | None
    tenant_status: str | None
    session_id: int
    full_name: str = ""

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "tenant_id": self.tenant_id,
            "tenant_status": self.tenant_status,
        }


@dataclass(frozen=True)
class SessionResolution:
    status: ResolutionStatus
    principal: Principal | None = None
    reason: str | None = None


@dataclass(frozen=True)
class RouteDecision:
    admit: bool
    redirect_to: str | None = None
    sign_out: bool = False


def resolve_landing_route(role: str | None) -> str:
    """Dashboard for a role; unknown or missing roles land on the owner dashboard."""
    return LANDING_ROUTES.get(role, DEFAULT_LANDING)


def _resolve_once(token: str | None) -> SessionResolution:
    identity = gateway.get_session_principal(token)
    if identity is None:
        return SessionResolution(ResolutionStatus.UNAUTHENTICATED)

    record = gateway.get_user_record(identity["user_id"])
    role = record["role"]
    tenant_id = record["tenant_id"]
    tenant_status = None

    if role != SUPER_ADMIN:
        if tenant_id is None:
            return SessionResolution(ResolutionStatus.DENIED, reason="tenant_missing")
        tenant_status = gateway.get_tenant(tenant_id)["status"]

    principal = Principal(
        user_id=record["internal_user_id"],
        email=identity["email"],
        full_name=record["full_name"],
        role=role,
        tenant_id=tenant_id,
        tenant_status=tenant_status,
        session_id=identity["session_id"],
    )

    if role != SUPER_ADMIN and tenant_status != "active":
        return SessionResolution(ResolutionStatus.DENIED, principal=principal, reason="tenant_inactive")

    return SessionResolution(ResolutionStatus.AUTHENTICATED, principal=principal)


def resolve_session(token: str | None) -> SessionResolution:
    """
    Resolve the caller behind ``token``.

    Transient backend errors are retried up to SESSION_RESOLVE_ATTEMPTS
    times; if they persist the result is INDETERMINATE. A user or tenant
    record that is missing outright is DENIED. An inactive tenant is DENIED
    and its session revoked (forced sign-out).
    """
    if not token:
        return SessionResolution(ResolutionStatus.UNAUTHENTICATED)

    attempts = max(1, current_app.config.get("SESSION_RESOLVE_ATTEMPTS", 3))
    backoff = current_app.config.get("SESSION_RESOLVE_BACKOFF", 0.05)

    resolution = None
    for attempt in range(attempts):
        try:
            resolution = _resolve_once(token)
            break
        except TransientLookupError as exc:
            current_app.logger.warning(
                "Session lookup failed (attempt %d/%d): %s", attempt + 1, attempts, exc.details
            )
            if attempt < attempts - 1:
                time.sleep(backoff * (2 ** attempt))
        except LookupFailed as exc:
            current_app.logger.warning("Session principal incomplete: %s", exc.message)
            resolution = SessionResolution(ResolutionStatus.DENIED, reason="record_missing")
            break

    if resolution is None:
        current_app.logger.error("Session resolution indeterminate after %d attempts; denying", attempts)
        return SessionResolution(ResolutionStatus.INDETERMINATE, reason="lookup_unavailable")

    if resolution.status is ResolutionStatus.DENIED:
        force_sign_out(token, resolution)

    return resolution


def force_sign_out(token: str, resolution: SessionResolution) -> None:
    """Revoke the caller's session after a DENIED resolution."""
    principal = resolution.principal
    reason = "Tenant deactivated" if resolution.reason == "tenant_inactive" else "Access denied"
    session = session_service.revoke_session(token, reason=reason)
    if session is not None:
        carts.discard(session.id)
    current_app.logger.info(
        "Forced sign-out (%s) for user %s, tenant %s",
        resolution.reason,
        principal.user_id if principal else None,
        principal.tenant_id if principal else None,
    )


def admit_route(resolution: SessionResolution) -> RouteDecision:
    """
    Route admission decision.

    | resolution      | outcome                                  |
    |-----------------|------------------------------------------|
    | UNAUTHENTICATED | redirect to public landing               |
    | AUTHENTICATED   | admit                                    |
    | DENIED          | sign out, redirect to public landing     |
    | INDETERMINATE   | deny, redirect to public landing (retry) |
    """
    if resolution.status is ResolutionStatus.AUTHENTICATED:
        return RouteDecision(admit=True)
    if resolution.status is ResolutionStatus.DENIED:
        return RouteDecision(admit=False, redirect_to=PUBLIC_LANDING, sign_out=True)
    return RouteDecision(admit=False, redirect_to=PUBLIC_LANDING)


def require_role(principal: Principal, *roles: str) -> None:
    if principal.role not in roles:
        raise RoleForbidden(
            "Akses ditolak untuk peran ini",
            details={"role": principal.role, "required_roles": list(roles)},
        )
