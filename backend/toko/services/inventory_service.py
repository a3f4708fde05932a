# Overview: Service-layer operations for products and suppliers; tenant-scoped catalog management.

"""
Catalog Service

Product and supplier CRUD, POS catalog search and low-stock lists. Every
function takes the caller's tenant_id and never touches rows of another
tenant.

Stock is not editable through update_product once a product exists:
purchases increment it and sales decrement it (see purchase_service and
gateway). Initial stock may be set on creation.
"""

from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Product, Purchase, PurchaseItem, SaleItem, Supplier
from ..money import to_decimal
from . import gateway
from .tenant_service import get_tenant_scoped

SUPPLIER_FIELDS = ("name", "contact", "phone", "address")


def _int_field(value, field: str, *, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer")
    if number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def _text(value, field: str, *, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field} is required")
    return value or None


def _ensure_barcode_free(tenant_id: int, barcode: str | None, exclude_id: int | None = None) -> None:
    if not barcode:
        return
    query = db.session.query(Product.id).filter(Product.tenant_id == tenant_id, Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Barcode sudah digunakan", details={"barcode": barcode})


# Products

def get_product(tenant_id: int, product_id: int) -> Product:
    return get_tenant_scoped(Product, product_id, tenant_id, "Produk")


def list_products(tenant_id: int, search: str | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.tenant_id == tenant_id)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(func.lower(Product.name).like(pattern), func.lower(Product.barcode).like(pattern))
        )
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def search_catalog(tenant_id: int, query: str | None = None) -> list[dict]:
    """
    POS catalog: products with stock > 0, optionally matching ``query``
    against name or barcode (case-insensitive).
    """
    if not query or not query.strip():
        return gateway.list_available_products(tenant_id)

    pattern = f"%{query.strip().lower()}%"
    q = db.session.query(Product).filter(Product.tenant_id == tenant_id, Product.stock > 0)
    q = q.filter(or_(func.lower(Product.name).like(pattern), func.lower(Product.barcode).like(pattern)))
    return [
        {
            "id": p.id,
            "name": p.name,
            "barcode": p.barcode,
            "sell_price": Decimal(p.sell_price),
            "stock": p.stock,
        }
        for p in q.order_by(Product.name.asc(), Product.id.asc()).all()
    ]


def create_product(tenant_id: int, data: dict) -> Product:
    name = _text(data.get("name"), "name", required=True)
    barcode = _text(data.get("barcode"), "barcode")
    sell_price = to_decimal(data.get("sell_price"), "sell_price")
    purchase_price = to_decimal(data.get("purchase_price", 0), "purchase_price")
    stock = _int_field(data.get("stock", 0), "stock")
    min_stock = _int_field(data.get("min_stock", 0), "min_stock")

    _ensure_barcode_free(tenant_id, barcode)

    product = Product(
        tenant_id=tenant_id,
        name=name,
        barcode=barcode,
        purchase_price=purchase_price,
        sell_price=sell_price,
        stock=stock,
        min_stock=min_stock,
    )
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Barcode sudah digunakan", details={"barcode": barcode})
    return product


def update_product(tenant_id: int, product_id: int, data: dict) -> Product:
    product = get_product(tenant_id, product_id)

    if "stock" in data and _int_field(data["stock"], "stock") != product.stock:
        raise ValidationError("Stok hanya berubah melalui pembelian dan penjualan")

    if "name" in data:
        product.name = _text(data["name"], "name", required=True)
    if "barcode" in data:
        barcode = _text(data["barcode"], "barcode")
        _ensure_barcode_free(tenant_id, barcode, exclude_id=product.id)
        product.barcode = barcode
    if "sell_price" in data:
        product.sell_price = to_decimal(data["sell_price"], "sell_price")
    if "purchase_price" in data:
        product.purchase_price = to_decimal(data["purchase_price"], "purchase_price")
    if "min_stock" in data:
        product.min_stock = _int_field(data["min_stock"], "min_stock")

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Barcode sudah digunakan")
    return product


def delete_product(tenant_id: int, product_id: int) -> None:
    product = get_product(tenant_id, product_id)

    in_use = (
        db.session.query(SaleItem.id).filter(SaleItem.product_id == product.id).first()
        or db.session.query(PurchaseItem.id).filter(PurchaseItem.product_id == product.id).first()
    )
    if in_use:
        raise ConflictError(
            "Produk sudah memiliki riwayat transaksi dan tidak dapat dihapus",
            details={"product_id": product.id},
        )

    db.session.delete(product)
    db.session.commit()


def list_low_stock(tenant_id: int, limit: int = 5) -> list[Product]:
    """Products at or below their minimum stock, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(Product.tenant_id == tenant_id, Product.stock <= Product.min_stock)
        .order_by(Product.stock.asc(), Product.name.asc())
        .limit(limit)
        .all()
    )


def count_low_stock(tenant_id: int) -> int:
    return (
        db.session.query(Product)
        .filter(Product.tenant_id == tenant_id, Product.stock <= Product.min_stock)
        .count()
    )


# Suppliers

def get_supplier(tenant_id: int, supplier_id: int) -> Supplier:
    return get_tenant_scoped(Supplier, supplier_id, tenant_id, "Supplier")


def list_suppliers(tenant_id: int) -> list[Supplier]:
    return (
        db.session.query(Supplier)
        .filter(Supplier.tenant_id == tenant_id)
        .order_by(Supplier.name.asc(), Supplier.id.asc())
        .all()
    )


def create_supplier(tenant_id: int, data: dict) -> Supplier:
    supplier = Supplier(
        tenant_id=tenant_id,
        name=_text(data.get("name"), "name", required=True),
        contact=_text(data.get("contact"), "contact"),
        phone=_text(data.get("phone"), "phone"),
        address=_text(data.get("address"), "address"),
    )
    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(tenant_id: int, supplier_id: int, data: dict) -> Supplier:
    supplier = get_supplier(tenant_id, supplier_id)
    for field in SUPPLIER_FIELDS:
        if field in data:
            setattr(supplier, field, _text(data[field], field, required=(field == "name")))
    db.session.commit()
    return supplier


def delete_supplier(tenant_id: int, supplier_id: int) -> None:
    """Delete a supplier; past purchases keep their rows without a supplier."""
    supplier = get_supplier(tenant_id, supplier_id)
    db.session.query(Purchase).filter(Purchase.supplier_id == supplier.id).update(
        {Purchase.supplier_id: None}, synchronize_session=False
    )
    db.session.delete(supplier)
    db.session.commit()
