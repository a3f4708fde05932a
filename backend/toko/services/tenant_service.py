# Overview: Service-layer operations for tenants; super-admin administration and scoping helpers.

"""
Multi-Tenant Service: tenant administration and isolation helpers

SECURITY INVARIANTS:
1. Every non-super-admin request carries the principal's tenant_id
2. Rows of another tenant are reported as "not found"
3. Deactivating a tenant revokes every session of its users
"""

from flask import current_app
from sqlalchemy import select

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import carts, db
from ..models import (
    TENANT_STATUSES,
    Product,
    Purchase,
    PurchaseItem,
    Sale,
    SaleItem,
    SessionToken,
    Supplier,
    Tenant,
    User,
)
from . import session_service


def get_tenant_scoped(model, obj_id: int, tenant_id: int, label: str = "Data"):
    """
    Load ``model`` row ``obj_id`` only if it belongs to ``tenant_id``.

    Raises NotFound both for missing rows and rows of another tenant.
    """
    obj = db.session.query(model).filter_by(id=obj_id, tenant_id=tenant_id).first()
    if obj is None:
        raise NotFound(f"{label} tidak ditemukan", details={"id": obj_id})
    return obj


def get_tenant(tenant_id: int) -> Tenant:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFound("Tenant tidak ditemukan", details={"tenant_id": tenant_id})
    return tenant


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Nama tenant wajib diisi")
    return name.strip()


def _clean_subdomain(subdomain, exclude_tenant_id: int | None = None) -> str | None:
    if subdomain is None:
        return None
    if not isinstance(subdomain, str):
        raise ValidationError("Subdomain tidak valid")
    subdomain = subdomain.strip().lower()
    if not subdomain:
        return None

    query = db.session.query(Tenant.id).filter(Tenant.subdomain == subdomain)
    if exclude_tenant_id is not None:
        query = query.filter(Tenant.id != exclude_tenant_id)
    if query.first():
        raise ConflictError("Subdomain sudah digunakan", details={"subdomain": subdomain})
    return subdomain


def list_tenants_with_owners() -> list[dict]:
    """All tenants, newest first, each with its owner (if any)."""
    tenants = db.session.query(Tenant).order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()
    owners = {
        u.tenant_id: u
        for u in db.session.query(User).filter(User.role == "owner").order_by(User.id.desc()).all()
    }

    result = []
    for tenant in tenants:
        owner = owners.get(tenant.id)
        data = tenant.to_dict()
        data["owner"] = (
            {"id": owner.id, "full_name": owner.full_name, "email": owner.email} if owner else None
        )
        result.append(data)
    return result


def tenant_stats() -> dict:
    total = db.session.query(Tenant).count()
    active = db.session.query(Tenant).filter(Tenant.status == "active").count()
    return {"total": total, "active": active, "inactive": total - active}


def create_tenant(name: str, subdomain: str | None = None) -> Tenant:
    tenant = Tenant(
        name=_clean_name(name),
        subdomain=_clean_subdomain(subdomain),
        status="active",
    )
    db.session.add(tenant)
    db.session.commit()
    current_app.logger.info("Tenant %s created: %s", tenant.id, tenant.name)
    return tenant


def update_tenant(tenant_id: int, name: str | None = None, subdomain: str | None = None) -> Tenant:
    tenant = get_tenant(tenant_id)
    if name is not None:
        tenant.name = _clean_name(name)
    if subdomain is not None:
        tenant.subdomain = _clean_subdomain(subdomain, exclude_tenant_id=tenant.id)
    db.session.commit()
    return tenant


def set_tenant_status(tenant_id: int, status: str) -> Tenant:
    """
    Activate or deactivate a tenant.

    Deactivation revokes all sessions of the tenant's users in the same
    transaction and drops their in-memory carts.
    """
    if status not in TENANT_STATUSES:
        raise ValidationError(
            "Status tidak valid",
            details={"status": status, "allowed": list(TENANT_STATUSES)},
        )

    tenant = get_tenant(tenant_id)
    if tenant.status == status:
        return tenant

    tenant.status = status
    revoked: list[int] = []
    if status == "inactive":
        revoked = session_service.revoke_tenant_sessions(tenant.id, "Tenant deactivated", commit=False)
    db.session.commit()

    for session_id in revoked:
        carts.discard(session_id)

    current_app.logger.info(
        "Tenant %s status set to %s (%d sessions revoked)", tenant.id, status, len(revoked)
    )
    return tenant


def toggle_tenant_status(tenant_id: int) -> Tenant:
    tenant = get_tenant(tenant_id)
    return set_tenant_status(tenant.id, "inactive" if tenant.is_active else "active")


def delete_tenant(tenant_id: int) -> None:
    """
    Delete a tenant and everything it owns.

    Children are deleted explicitly, child tables first, so the result does
    not depend on the database enforcing ON DELETE CASCADE.
    """
    tenant = get_tenant(tenant_id)

    user_ids = select(User.id).where(User.tenant_id == tenant.id)
    session_ids = [
        row.id for row in db.session.query(SessionToken.id).filter(SessionToken.user_id.in_(user_ids)).all()
    ]
    sale_ids = select(Sale.id).where(Sale.tenant_id == tenant.id)
    purchase_ids = select(Purchase.id).where(Purchase.tenant_id == tenant.id)

    db.session.query(SaleItem).filter(SaleItem.sale_id.in_(sale_ids)).delete(synchronize_session=False)
    db.session.query(Sale).filter(Sale.tenant_id == tenant.id).delete(synchronize_session=False)
    db.session.query(PurchaseItem).filter(PurchaseItem.purchase_id.in_(purchase_ids)).delete(
        synchronize_session=False
    )
    db.session.query(Purchase).filter(Purchase.tenant_id == tenant.id).delete(synchronize_session=False)
    db.session.query(Product).filter(Product.tenant_id == tenant.id).delete(synchronize_session=False)
    db.session.query(Supplier).filter(Supplier.tenant_id == tenant.id).delete(synchronize_session=False)
    db.session.query(SessionToken).filter(SessionToken.id.in_(session_ids)).delete(synchronize_session=False)
    db.session.query(User).filter(User.tenant_id == tenant.id).delete(synchronize_session=False)
    db.session.query(Tenant).filter(Tenant.id == tenant.id).delete(synchronize_session=False)
    db.session.commit()

    for session_id in session_ids:
        carts.discard(session_id)

    current_app.logger.info("Tenant %s deleted", tenant_id)
