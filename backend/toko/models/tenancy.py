from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

TENANT_STATUSES = ("active", "inactive")


class Tenant(db.Model):
    """
    Multi-tenant root: every store business is a Tenant.

    All products, suppliers, purchases, sales and non-super-admin users
    belong to exactly one tenant. No data may cross tenant boundaries.
    """
    __tablename__ = "tenants"
    __table_args__ = (
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_tenants_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    subdomain = db.Column(db.String(64), nullable=True, unique=True)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "subdomain": self.subdomain,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
