# Overview: Service-layer checkout processing; turns a cart into a committed sale.

"""
Checkout Processor

State machine (one per checkout attempt):

    IDLE --open (cart non-empty)--> AWAITING_PAYMENT_METHOD
    AWAITING_PAYMENT_METHOD --cash, amount >= total--> READY
    AWAITING_PAYMENT_METHOD --cash, amount < total--> AWAITING_PAYMENT_METHOD (InsufficientPayment)
    AWAITING_PAYMENT_METHOD --qris | ewallet--> READY
    READY --confirm--> COMMITTING
    COMMITTING --commit ok--> COMPLETE (receipt)
    COMMITTING --any failure--> FAILED (cart kept, confirm may be retried)

The commit itself is a single atomic gateway call: sale header, sale items
and guarded stock decrements succeed or fail together.
"""

from __future__ import annotations

import time
from decimal import Decimal

from flask import current_app

from ..errors import (
    CheckoutStateError,
    EmptyCart,
    InsufficientPayment,
    InvalidPaymentMethod,
    TokoError,
)
from ..extensions import carts
from ..models import PAYMENT_METHODS, Sale
from ..money import ZERO, money_str, to_decimal
from ..time_utils import to_utc_z
from . import gateway
from .cart import Cart
from .principal_service import Principal

IDLE = "IDLE"
AWAITING_PAYMENT_METHOD = "AWAITING_PAYMENT_METHOD"
READY = "READY"
COMMITTING = "COMMITTING"
COMPLETE = "COMPLETE"
FAILED = "FAILED"

PAYMENT_METHOD_LABELS = {
    "cash": "Tunai",
    "qris": "QRIS",
    "ewallet": "E-Wallet",
}


def compute_change(amount_received: Decimal, total: Decimal) -> Decimal:
    return max(ZERO, Decimal(amount_received) - Decimal(total))


def validate_payment(method: str, amount_received, total: Decimal) -> Decimal:
    """
    Check the tendered payment against ``total``.

    Returns the amount received as a Decimal (``total`` for non-cash methods,
    which settle out of band).
    """
    if method not in PAYMENT_METHODS:
        raise InvalidPaymentMethod(
            "Metode pembayaran tidak valid",
            details={"payment_method": method, "allowed": list(PAYMENT_METHODS)},
        )

    if method != "cash":
        return Decimal(total)

    if amount_received is None or amount_received == "":
        raise InsufficientPayment(
            "Jumlah pembayaran kurang",
            details={"total": money_str(total), "amount_received": None},
        )

    received = to_decimal(amount_received, "amount_received")
    if received < total:
        raise InsufficientPayment(
            "Jumlah pembayaran kurang",
            details={"total": money_str(total), "amount_received": money_str(received)},
        )
    return received


def _sale_items(cart: Cart) -> list[dict]:
    return [
        {
            "product_id": item.product_id,
            "quantity": item.quantity,
            "price": item.unit_price,
            "subtotal": item.subtotal,
        }
        for item in cart
    ]


def commit(
    principal: Principal,
    cart: Cart,
    method: str,
    amount_received=None,
    timeout: float | None = None,
) -> Sale:
    """
    Persist ``cart`` as a sale for ``principal``'s tenant.

    On success the cart is cleared. On any failure the cart is left as it
    was and the error propagates (StockExceeded for a stock guard failure,
    CommitFailed / CommitTimeout otherwise).

    The cart is held for the whole commit: a concurrent checkout of the same
    cart waits and then finds it empty, and a nested one is refused with
    CheckoutStateError.
    """
    with cart.checkout():
        if cart.is_empty:
            raise EmptyCart("Keranjang masih kosong")

        total = cart.total()
        received = validate_payment(method, amount_received, total)
        change = compute_change(received, total) if method == "cash" else ZERO

        if timeout is None:
            timeout = current_app.config.get("CHECKOUT_TIMEOUT_SECONDS")
        deadline = time.monotonic() + timeout if timeout is not None else None

        sale = gateway.commit_sale(
            tenant_id=principal.tenant_id,
            user_id=principal.user_id,
            total=total,
            payment_method=method,
            payment_received=received,
            change_amount=change,
            items=_sale_items(cart),
            deadline=deadline,
        )

        current_app.logger.info(
            "Sale %s committed: tenant=%s user=%s total=%s method=%s items=%d",
            sale.id, principal.tenant_id, principal.user_id, total, method, len(cart),
        )
    return sale


class CheckoutSession:
    """
    One checkout attempt over a cart.

    Guards the order of operations; the work itself is done by
    ``validate_payment`` and ``commit``.
    """

    def __init__(self, principal: Principal, cart: Cart, timeout: float | None = None):
        self.principal = principal
        self.cart = cart
        self.timeout = timeout
        self.state = IDLE
        self.payment_method: str | None = None
        self.amount_received = None
        self.sale: Sale | None = None
        self.receipt: dict | None = None
        self.error: TokoError | None = None

    def _expect(self, *states: str) -> None:
        if self.state not in states:
            raise CheckoutStateError(
                f"Tidak dapat melanjutkan dari status {self.state}",
                details={"state": self.state, "expected": list(states)},
            )

    def open(self) -> None:
        self._expect(IDLE)
        if self.cart.is_empty:
            raise EmptyCart("Keranjang masih kosong")
        self.state = AWAITING_PAYMENT_METHOD

    def choose_payment(self, method: str, amount_received=None) -> None:
        self._expect(AWAITING_PAYMENT_METHOD, READY)
        # An invalid choice leaves the session waiting for a payment method
        self.state = AWAITING_PAYMENT_METHOD
        validate_payment(method, amount_received, self.cart.total())
        self.payment_method = method
        self.amount_received = amount_received
        self.state = READY

    def confirm(self) -> dict:
        self._expect(READY, FAILED)
        if self.state == FAILED:
            # Cart may have been edited between attempts
            validate_payment(self.payment_method, self.amount_received, self.cart.total())

        self.state = COMMITTING
        self.error = None
        try:
            self.sale = commit(
                self.principal,
                self.cart,
                self.payment_method,
                self.amount_received,
                timeout=self.timeout,
            )
        except TokoError as exc:
            self.state = FAILED
            self.error = exc
            raise

        self.state = COMPLETE
        self.receipt = build_receipt(self.sale)
        return self.receipt


def checkout_cart(principal: Principal, method: str, amount_received=None) -> dict:
    """Run a full checkout over the caller's session cart and return the receipt."""
    session = CheckoutSession(principal, carts.get(principal.session_id))
    session.open()
    session.choose_payment(method, amount_received)
    return session.confirm()


def build_receipt(sale: Sale) -> dict:
    items = [
        {
            "product_id": item.product_id,
            "product_name": item.product.name if item.product else None,
            "quantity": item.quantity,
            "price": money_str(item.price),
            "subtotal": money_str(item.subtotal),
        }
        for item in sorted(sale.items, key=lambda i: i.id)
    ]
    tenant_name = sale.tenant.name if sale.tenant else None
    return {
        "sale_id": sale.id,
        "store_name": tenant_name,
        "cashier_name": sale.user.full_name if sale.user else None,
        "created_at": to_utc_z(sale.created_at),
        "items": items,
        "item_count": len(items),
        "total": money_str(sale.total),
        "payment_method": sale.payment_method,
        "payment_method_label": PAYMENT_METHOD_LABELS.get(sale.payment_method, sale.payment_method),
        "payment_received": money_str(sale.payment_received),
        "change_amount": money_str(sale.change_amount),
    }
