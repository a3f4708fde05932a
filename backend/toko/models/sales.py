from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z

PAYMENT_METHODS = ("cash", "qris", "ewallet")


class Sale(db.Model):
    """
    Completed point-of-sale transaction.

    Created exactly once per committed checkout, together with its items and
    the matching stock decrements, in a single database transaction.
    Immutable afterwards.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("payment_method IN ('cash', 'qris', 'ewallet')", name="ck_sales_payment_method"),
        db.Index("ix_sales_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_sales_tenant_user_created", "tenant_id", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    total = db.Column(db.Numeric(14, 2), nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    payment_received = db.Column(db.Numeric(14, 2), nullable=False)
    change_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")
    tenant = db.relationship("Tenant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "cashier_name": self.user.full_name if self.user else None,
            "total": money_str(self.total),
            "payment_method": self.payment_method,
            "payment_received": money_str(self.payment_received),
            "change_amount": money_str(self.change_amount),
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """One line of a sale; one row per distinct cart item at commit time."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, passive_deletes=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price": money_str(self.price),
            "subtotal": money_str(self.subtotal),
        }
