# Overview: Service-layer operations for purchases; records stock received from suppliers.

"""
Purchase Service

Recording a purchase inserts the purchase header, its items and increments
product stock in one transaction. Nothing is persisted if any line fails.
"""

from flask import current_app
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import CommitFailed, TokoError, ValidationError
from ..extensions import db
from ..models import PURCHASE_PAYMENT_STATUSES, Purchase, PurchaseItem
from ..money import ZERO, to_decimal
from . import gateway
from .concurrency import run_with_retry
from .inventory_service import get_product, get_supplier


def _parse_lines(tenant_id: int, items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Minimal satu item pembelian diperlukan")

    lines = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError("Item pembelian tidak valid", details={"index": index})

        product_id = raw.get("product_id")
        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("quantity must be a positive integer", details={"index": index})
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("product_id must be an integer", details={"index": index})

        product = get_product(tenant_id, product_id)
        price = to_decimal(raw.get("price", product.purchase_price), "price")
        lines.append({
            "product_id": product.id,
            "quantity": quantity,
            "price": price,
            "subtotal": price * quantity,
        })
    return lines


def record_purchase(
    tenant_id: int,
    items,
    supplier_id: int | None = None,
    payment_status: str = "belum_lunas",
    notes: str | None = None,
) -> Purchase:
    """
    Record stock received from a supplier.

    ``items`` is a list of {product_id, quantity, price?}; price defaults to
    the product's purchase price. Returns the committed Purchase.
    """
    if payment_status not in PURCHASE_PAYMENT_STATUSES:
        raise ValidationError(
            "Status pembayaran tidak valid",
            details={"payment_status": payment_status, "allowed": list(PURCHASE_PAYMENT_STATUSES)},
        )
    if supplier_id is not None:
        get_supplier(tenant_id, supplier_id)

    lines = _parse_lines(tenant_id, items)
    total = sum((line["subtotal"] for line in lines), ZERO)

    def _op():
        try:
            purchase = Purchase(
                tenant_id=tenant_id,
                supplier_id=supplier_id,
                total=total,
                payment_status=payment_status,
                notes=notes,
            )
            db.session.add(purchase)
            db.session.flush()

            db.session.add_all(PurchaseItem(purchase_id=purchase.id, **line) for line in lines)
            for line in lines:
                gateway.increment_product_stock(line["product_id"], line["quantity"], tenant_id)
            db.session.commit()
        except TokoError:
            db.session.rollback()
            raise
        return purchase.id

    try:
        purchase_id = run_with_retry(_op)
    except (OperationalError, StaleDataError) as exc:
        current_app.logger.warning("Purchase commit gave up after retries: %s", exc)
        raise CommitFailed("Gagal menyimpan pembelian") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Purchase commit failed")
        raise CommitFailed("Gagal menyimpan pembelian") from exc

    current_app.logger.info("Purchase %s recorded for tenant %s: total=%s", purchase_id, tenant_id, total)
    return db.session.get(Purchase, purchase_id)


def list_purchases(tenant_id: int, start=None, end=None) -> list[Purchase]:
    query = db.session.query(Purchase).filter(Purchase.tenant_id == tenant_id)
    if start is not None:
        query = query.filter(Purchase.created_at >= start)
    if end is not None:
        query = query.filter(Purchase.created_at < end)
    return query.order_by(Purchase.created_at.desc(), Purchase.id.desc()).all()
