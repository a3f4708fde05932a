# Overview: Backend gateway; the only path from the POS core to durable state.

"""
Backend Gateway

Logical operations the session resolver, cart and checkout use to reach
durable state. Each function is one logical round-trip:

    get_session_principal(token)       -> {user_id, email, session_id} | None
    get_user_record(user_id)           -> {role, tenant_id, internal_user_id, ...}
    get_tenant(tenant_id)              -> {id, name, status}
    list_available_products(tenant_id) -> [{id, name, barcode, sell_price, stock}]
    create_sale(...)                   -> sale_id
    create_sale_items([...])           -> None
    decrement_product_stock(...)       -> None | StockExceeded
    increment_product_stock(...)       -> None
    commit_sale(...)                   -> Sale   (atomic: header + items + stock)
    sign_out(token)                    -> bool

The individual write functions only flush; they never commit. ``commit_sale``
is the single atomic boundary of a checkout: either the sale, all of its items
and every stock decrement are committed together, or nothing is.

Connectivity problems during lookups are reported as TransientLookupError so
callers can decide how to fail (the session gate fails closed).
"""

from __future__ import annotations

import time
from decimal import Decimal
from functools import wraps

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import (
    CommitFailed,
    CommitTimeout,
    LookupFailed,
    NotFound,
    StockExceeded,
    TokoError,
    TransientLookupError,
)
from ..extensions import carts, db
from ..models import Product, Sale, SaleItem, Tenant, User
from . import session_service
from .concurrency import run_with_retry


def _lookup(func):
    """Translate connectivity failures of read calls into TransientLookupError."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as exc:
            db.session.rollback()
            raise TransientLookupError(
                "Backend temporarily unavailable",
                details={"operation": func.__name__},
            ) from exc
    return wrapper


@_lookup
def get_session_principal(token: str | None) -> dict | None:
    session = session_service.validate_session(token) if token else None
    if session is None:
        return None
    return {
        "user_id": session.user_id,
        "email": session.user.email,
        "session_id": session.id,
    }


@_lookup
def get_user_record(user_id: int) -> dict:
    user = db.session.get(User, user_id)
    if user is None:
        raise LookupFailed("Gagal memuat data user", details={"user_id": user_id})
    return {
        "internal_user_id": user.id,
        "role": user.role,
        "tenant_id": user.tenant_id,
        "full_name": user.full_name,
        "email": user.email,
    }


@_lookup
def get_tenant(tenant_id: int) -> dict:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise LookupFailed("Gagal memuat data tenant", details={"tenant_id": tenant_id})
    return {"id": tenant.id, "name": tenant.name, "status": tenant.status}


@_lookup
def list_available_products(tenant_id: int) -> list[dict]:
    rows = (
        db.session.query(Product)
        .filter(Product.tenant_id == tenant_id, Product.stock > 0)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [
        {
            "id": p.id,
            "name": p.name,
            "barcode": p.barcode,
            "sell_price": Decimal(p.sell_price),
            "stock": p.stock,
        }
        for p in rows
    ]


def create_sale(
    *,
    tenant_id: int,
    user_id: int,
    total: Decimal,
    payment_method: str,
    payment_received: Decimal,
    change_amount: Decimal,
) -> int:
    sale = Sale(
        tenant_id=tenant_id,
        user_id=user_id,
        total=total,
        payment_method=payment_method,
        payment_received=payment_received,
        change_amount=change_amount,
    )
    db.session.add(sale)
    db.session.flush()
    return sale.id


def create_sale_items(items: list[dict]) -> None:
    db.session.add_all(
        SaleItem(
            sale_id=item["sale_id"],
            product_id=item["product_id"],
            quantity=item["quantity"],
            price=item["price"],
            subtotal=item["subtotal"],
        )
        for item in items
    )
    db.session.flush()


def decrement_product_stock(product_id: int, quantity: int, tenant_id: int) -> None:
    """
    stock = stock - quantity WHERE stock >= quantity, as one statement.

    Raises StockExceeded when the guard fails and NotFound when the product
    does not exist in the tenant.
    """
    result = db.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.tenant_id == tenant_id,
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    current = db.session.query(Product.stock, Product.name).filter_by(
        id=product_id, tenant_id=tenant_id
    ).first()
    if current is None:
        raise NotFound("Produk tidak ditemukan", details={"product_id": product_id})
    raise StockExceeded(
        f"Stok {current.name} hanya tersisa {current.stock}",
        details={
            "product_id": product_id,
            "requested_quantity": quantity,
            "stock": current.stock,
        },
    )


def increment_product_stock(product_id: int, quantity: int, tenant_id: int) -> None:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.tenant_id == tenant_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFound("Produk tidak ditemukan", details={"product_id": product_id})


def _check_deadline(deadline: float | None) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise CommitTimeout("Waktu pemrosesan transaksi habis, silakan coba lagi")


def commit_sale(
    *,
    tenant_id: int,
    user_id: int,
    total: Decimal,
    payment_method: str,
    payment_received: Decimal,
    change_amount: Decimal,
    items: list[dict],
    deadline: float | None = None,
) -> Sale:
    """
    Persist a sale, its items and the stock decrements in one transaction.

    ``items`` are dicts with product_id, quantity, price and subtotal.
    ``deadline`` is a time.monotonic() value; passing it before the final
    commit rolls everything back with CommitTimeout.
    """
    def _op():
        try:
            _check_deadline(deadline)
            sale_id = create_sale(
                tenant_id=tenant_id,
                user_id=user_id,
                total=total,
                payment_method=payment_method,
                payment_received=payment_received,
                change_amount=change_amount,
            )
            create_sale_items([dict(item, sale_id=sale_id) for item in items])
            for item in items:
                decrement_product_stock(item["product_id"], item["quantity"], tenant_id)
            _check_deadline(deadline)
            db.session.commit()
        except TokoError:
            db.session.rollback()
            raise
        return sale_id

    try:
        sale_id = run_with_retry(_op)
    except (OperationalError, StaleDataError) as exc:
        current_app.logger.warning("Sale commit gave up after retries: %s", exc)
        raise CommitFailed("Gagal memproses pembayaran") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Sale commit failed")
        raise CommitFailed("Gagal memproses pembayaran") from exc

    return db.session.get(Sale, sale_id)


@_lookup
def sign_out(token: str) -> bool:
    session = session_service.revoke_session(token, reason="User logout")
    if session is None:
        return False
    carts.discard(session.id)
    return True
