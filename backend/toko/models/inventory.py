from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z

PURCHASE_PAYMENT_STATUSES = ("lunas", "belum_lunas", "sebagian")


class Product(db.Model):
    """
    Sellable product of a tenant.

    Stock is a plain counter mutated only through guarded atomic updates
    (see services.gateway). The CHECK constraint backs the stock >= 0 invariant.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.UniqueConstraint("tenant_id", "barcode", name="uq_products_tenant_barcode"),
        db.Index("ix_products_tenant_name", "tenant_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)

    purchase_price = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    sell_price = db.Column(db.Numeric(14, 2), nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "barcode": self.barcode,
            "purchase_price": money_str(self.purchase_price),
            "sell_price": money_str(self.sell_price),
            "stock": self.stock,
            "min_stock": self.min_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "contact": self.contact,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Purchase(db.Model):
    """Stock received from a supplier. Recording one increments product stock."""
    __tablename__ = "purchases"
    __table_args__ = (
        db.CheckConstraint(
            "payment_status IN ('lunas', 'belum_lunas', 'sebagian')",
            name="ck_purchases_payment_status",
        ),
        db.Index("ix_purchases_tenant_created", "tenant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)

    total = db.Column(db.Numeric(14, 2), nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default="belum_lunas")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "total": money_str(self.total),
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    purchase = db.relationship("Purchase", backref=db.backref("items", lazy=True, passive_deletes=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": money_str(self.price),
            "subtotal": money_str(self.subtotal),
        }
