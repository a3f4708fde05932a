# Overview: In-memory cart engine for one checkout session.

"""
Cart Engine

Holds the line items of the transaction in progress. Quantities are bounded
by the stock snapshot observed when the product was offered to the cart; the
authoritative check happens again at commit time (guarded stock decrement).

INVARIANTS (hold after every public call, successful or not):
- 1 <= item.quantity <= item.stock_snapshot
- item.subtotal == item.quantity * item.unit_price
- cart.total() == sum(item.subtotal for item in cart)

A rejected mutation raises and leaves the cart exactly as it was. While a
checkout holds the cart, edits and a second checkout are refused.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

from ..errors import CartItemNotFound, CheckoutStateError, InvalidQuantity, StockExceeded, ValidationError

ZERO = Decimal("0.00")


def _field(product, name: str):
    if isinstance(product, Mapping):
        return product[name]
    return getattr(product, name)


@dataclass
class CartItem:
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    stock_snapshot: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "subtotal": str(self.subtotal),
            "stock_snapshot": self.stock_snapshot,
        }


class Cart:
    """Line items of one checkout, insertion ordered."""

    def __init__(self):
        self._items: dict[int, CartItem] = {}
        self._lock = threading.RLock()
        self._checking_out = False

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items.values()))

    def __contains__(self, product_id) -> bool:
        return product_id in self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: int) -> CartItem | None:
        return self._items.get(product_id)

    def _ensure_editable(self) -> None:
        if self._checking_out:
            raise CheckoutStateError(
                "Keranjang sedang diproses di kasir",
                details={"state": "COMMITTING"},
            )

    def add_item(self, product) -> CartItem:
        """
        Add one unit of ``product``.

        ``product`` is a Product row or a catalog mapping exposing
        id, name, sell_price and stock.
        """
        product_id = _field(product, "id")
        name = _field(product, "name")
        stock = int(_field(product, "stock"))
        price = Decimal(_field(product, "sell_price"))

        with self._lock:
            self._ensure_editable()
            existing = self._items.get(product_id)
            if existing is not None:
                if existing.quantity + 1 > stock:
                    raise StockExceeded(
                        f"Stok {name} hanya tersisa {stock}",
                        details={
                            "product_id": product_id,
                            "requested_quantity": existing.quantity + 1,
                            "stock": stock,
                        },
                    )
                existing.quantity += 1
                existing.stock_snapshot = stock
                return existing

            if stock < 1:
                raise StockExceeded(
                    f"Stok {name} habis",
                    details={"product_id": product_id, "requested_quantity": 1, "stock": stock},
                )
            if price < 0:
                raise ValidationError("sell_price must not be negative")

            item = CartItem(
                product_id=product_id,
                product_name=name,
                quantity=1,
                unit_price=price,
                stock_snapshot=stock,
            )
            self._items[product_id] = item
            return item

    def adjust_quantity(self, product_id: int, delta: int) -> CartItem:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("delta must be an integer")

        with self._lock:
            self._ensure_editable()
            item = self._items.get(product_id)
            if item is None:
                raise CartItemNotFound("Product is not in the cart", details={"product_id": product_id})

            new_quantity = item.quantity + delta
            if new_quantity < 1:
                raise InvalidQuantity(
                    "Quantity must be at least 1; remove the item instead",
                    details={"product_id": product_id, "requested_quantity": new_quantity},
                )
            if new_quantity > item.stock_snapshot:
                raise StockExceeded(
                    f"Stok hanya tersisa {item.stock_snapshot}",
                    details={
                        "product_id": product_id,
                        "requested_quantity": new_quantity,
                        "stock": item.stock_snapshot,
                    },
                )
            item.quantity = new_quantity
            return item

    def remove_item(self, product_id: int) -> None:
        with self._lock:
            self._ensure_editable()
            self._items.pop(product_id, None)

    def total(self) -> Decimal:
        # Recomputed on every call, never cached
        return sum((item.subtotal for item in self._items.values()), ZERO)

    def clear(self) -> None:
        with self._lock:
            self._ensure_editable()
            self._items.clear()

    @contextmanager
    def checkout(self):
        """
        Hold the cart for one commit.

        Other requests on the same cart wait for the lock; edits and a second
        checkout made while the block runs are refused. The cart is emptied
        only when the block completes without raising.
        """
        with self._lock:
            if self._checking_out:
                raise CheckoutStateError(
                    "Checkout sedang diproses",
                    details={"state": "COMMITTING"},
                )
            self._checking_out = True
            try:
                yield self
                self._items.clear()
            finally:
                self._checking_out = False

    def to_dict(self) -> dict:
        items = list(self._items.values())
        return {
            "items": [item.to_dict() for item in items],
            "item_count": len(items),
            "total": str(self.total()),
        }


class CartStore:
    """
    One cart per authenticated session, held in process memory.

    Carts are not persisted: a server restart or sign-out discards them.
    """

    def __init__(self):
        self._carts: dict[int, Cart] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._carts)

    def get(self, session_id: int) -> Cart:
        with self._lock:
            cart = self._carts.get(session_id)
            if cart is None:
                cart = Cart()
                self._carts[session_id] = cart
            return cart

    def discard(self, session_id: int) -> None:
        with self._lock:
            self._carts.pop(session_id, None)

    def clear_all(self) -> None:
        with self._lock:
            self._carts.clear()
