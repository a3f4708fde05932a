# Overview: Pytest coverage for checkout processing and the atomic sale commit.

"""
Checkout Processor Tests

- change and payment validation
- CheckoutSession state machine
- commit side effects: one Sale, one SaleItem per cart line, matching stock decrements
- all-or-nothing: guard failures, stale snapshots and timeouts persist nothing
"""

import threading
import time
from decimal import Decimal

import pytest

from toko.errors import (
    CheckoutStateError,
    CommitTimeout,
    EmptyCart,
    InsufficientPayment,
    InvalidPaymentMethod,
    NotFound,
    StockExceeded,
)
from toko.models import Product, Sale, SaleItem
from toko.services import checkout_service, gateway
from toko.services.cart import Cart
from toko.services.checkout_service import (
    AWAITING_PAYMENT_METHOD,
    COMPLETE,
    FAILED,
    IDLE,
    READY,
    CheckoutSession,
    compute_change,
    validate_payment,
)

from conftest import make_product, principal_for


def filled_cart(product_a, product_b) -> Cart:
    """Scenario cart: A x2 (10000) + B x1 (25000) = 45000."""
    cart = Cart()
    cart.add_item(product_a)
    cart.add_item(product_a)
    cart.add_item(product_b)
    return cart


class TestPaymentRules:
    def test_change_for_cash(self):
        assert compute_change(Decimal("50000"), Decimal("45000")) == Decimal("5000")

    def test_change_never_negative(self):
        assert compute_change(Decimal("40000"), Decimal("45000")) == Decimal("0")

    def test_cash_sufficient(self):
        assert validate_payment("cash", "50000", Decimal("45000")) == Decimal("50000.00")

    def test_cash_exact(self):
        assert validate_payment("cash", "45000", Decimal("45000")) == Decimal("45000.00")

    def test_cash_insufficient(self):
        with pytest.raises(InsufficientPayment):
            validate_payment("cash", "40000", Decimal("45000"))

    def test_cash_missing_amount(self):
        with pytest.raises(InsufficientPayment):
            validate_payment("cash", None, Decimal("45000"))

    @pytest.mark.parametrize("method", ["qris", "ewallet"])
    def test_non_cash_always_passes(self, method):
        assert validate_payment(method, None, Decimal("45000")) == Decimal("45000")

    def test_unknown_method(self):
        with pytest.raises(InvalidPaymentMethod):
            validate_payment("bitcoin", "50000", Decimal("45000"))


class TestCheckoutStateMachine:
    def test_happy_path(self, db_session, kasir_a, product_a, product_b):
        session = CheckoutSession(principal_for(kasir_a), filled_cart(product_a, product_b))
        assert session.state == IDLE

        session.open()
        assert session.state == AWAITING_PAYMENT_METHOD

        session.choose_payment("cash", "50000")
        assert session.state == READY

        receipt = session.confirm()
        assert session.state == COMPLETE
        assert receipt["total"] == "45000.00"
        assert receipt["change_amount"] == "5000.00"
        assert receipt["payment_method_label"] == "Tunai"

    def test_open_requires_items(self, db_session, kasir_a):
        session = CheckoutSession(principal_for(kasir_a), Cart())
        with pytest.raises(EmptyCart):
            session.open()
        assert session.state == IDLE

    def test_insufficient_cash_stays_awaiting(self, db_session, kasir_a, product_a, product_b):
        session = CheckoutSession(principal_for(kasir_a), filled_cart(product_a, product_b))
        session.open()

        with pytest.raises(InsufficientPayment):
            session.choose_payment("cash", "40000")
        assert session.state == AWAITING_PAYMENT_METHOD

        session.choose_payment("qris")
        assert session.state == READY

    def test_confirm_before_payment_is_rejected(self, db_session, kasir_a, product_a):
        cart = Cart()
        cart.add_item(product_a)
        session = CheckoutSession(principal_for(kasir_a), cart)
        session.open()

        with pytest.raises(CheckoutStateError):
            session.confirm()

    def test_failed_commit_can_be_retried(self, db_session, kasir_a, product_a):
        cart = Cart()
        cart.add_item(product_a)
        cart.adjust_quantity(product_a.id, 2)

        # Another checkout sold most of the stock
        db_session.query(Product).filter_by(id=product_a.id).update({"stock": 1})
        db_session.commit()

        session = CheckoutSession(principal_for(kasir_a), cart)
        session.open()
        session.choose_payment("ewallet")
        with pytest.raises(StockExceeded):
            session.confirm()
        assert session.state == FAILED
        assert len(cart) == 1

        cart.adjust_quantity(product_a.id, -2)
        receipt = session.confirm()
        assert session.state == COMPLETE
        assert receipt["item_count"] == 1


class TestCommit:
    def test_commit_side_effects(self, db_session, kasir_a, product_a, product_b):
        cart = filled_cart(product_a, product_b)
        sale = checkout_service.commit(principal_for(kasir_a), cart, "cash", "50000")

        assert db_session.query(Sale).count() == 1
        items = db_session.query(SaleItem).filter_by(sale_id=sale.id).all()
        assert len(items) == 2
        assert {(i.product_id, i.quantity) for i in items} == {(product_a.id, 2), (product_b.id, 1)}

        assert sale.total == Decimal("45000")
        assert sale.payment_received == Decimal("50000")
        assert sale.change_amount == Decimal("5000")
        assert sale.tenant_id == kasir_a.tenant_id
        assert sale.user_id == kasir_a.id

        assert db_session.get(Product, product_a.id).stock == 3
        assert db_session.get(Product, product_b.id).stock == 0
        assert cart.is_empty

    def test_non_cash_records_total_and_no_change(self, db_session, kasir_a, product_a):
        cart = Cart()
        cart.add_item(product_a)
        sale = checkout_service.commit(principal_for(kasir_a), cart, "qris", "999999")

        assert sale.payment_received == Decimal("10000")
        assert sale.change_amount == Decimal("0")

    def test_insufficient_cash_persists_nothing(self, db_session, kasir_a, product_a, product_b):
        cart = filled_cart(product_a, product_b)
        with pytest.raises(InsufficientPayment):
            checkout_service.commit(principal_for(kasir_a), cart, "cash", "40000")

        assert db_session.query(Sale).count() == 0
        assert len(cart) == 2

    def test_empty_cart(self, db_session, kasir_a):
        with pytest.raises(EmptyCart):
            checkout_service.commit(principal_for(kasir_a), Cart(), "cash", "1000")

    def test_stale_snapshot_rolls_back_everything(self, db_session, kasir_a, product_a, product_b):
        """
        B is sold out elsewhere after it was added. The guarded decrement
        fails and A's decrement, the sale and its items are rolled back.
        """
        cart = filled_cart(product_a, product_b)
        db_session.query(Product).filter_by(id=product_b.id).update({"stock": 0})
        db_session.commit()

        with pytest.raises(StockExceeded):
            checkout_service.commit(principal_for(kasir_a), cart, "cash", "50000")

        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert db_session.get(Product, product_a.id).stock == 5
        assert db_session.get(Product, product_b.id).stock == 0
        assert len(cart) == 2

    def test_two_checkouts_cannot_oversell(self, db_session, kasir_a, owner_a, product_b):
        """Both carts hold the last unit; only the first commit succeeds."""
        first, second = Cart(), Cart()
        first.add_item(product_b)
        second.add_item(product_b)

        checkout_service.commit(principal_for(kasir_a), first, "qris")
        with pytest.raises(StockExceeded):
            checkout_service.commit(principal_for(owner_a), second, "qris")

        assert db_session.get(Product, product_b.id).stock == 0
        assert db_session.query(Sale).count() == 1

    def test_timeout_rolls_back(self, db_session, kasir_a, product_a, monkeypatch):
        original = gateway.decrement_product_stock

        def slow_decrement(*args, **kwargs):
            time.sleep(0.05)
            return original(*args, **kwargs)

        monkeypatch.setattr(gateway, "decrement_product_stock", slow_decrement)

        cart = Cart()
        cart.add_item(product_a)
        with pytest.raises(CommitTimeout):
            checkout_service.commit(principal_for(kasir_a), cart, "qris", timeout=0.01)

        assert db_session.query(Sale).count() == 0
        assert db_session.get(Product, product_a.id).stock == 5
        assert len(cart) == 1

    def test_commit_is_scoped_to_principal_tenant(self, db_session, kasir_a, tenant_b):
        """A product id from another tenant is never decremented."""
        foreign = make_product(db_session, tenant_b, "Produk B", "5000", 3)
        cart = Cart()
        cart.add_item(foreign)

        with pytest.raises(NotFound):
            checkout_service.commit(principal_for(kasir_a), cart, "qris")

        assert db_session.get(Product, foreign.id).stock == 3
        assert db_session.query(Sale).count() == 0

    def test_edit_during_commit_is_refused_not_lost(self, db_session, kasir_a, product_a, product_b,
                                                    monkeypatch):
        cart = Cart()
        cart.add_item(product_a)
        original = gateway.commit_sale

        def commit_with_edit(**kwargs):
            with pytest.raises(CheckoutStateError):
                cart.add_item(product_b)
            return original(**kwargs)

        monkeypatch.setattr(gateway, "commit_sale", commit_with_edit)
        sale = checkout_service.commit(principal_for(kasir_a), cart, "qris")

        items = db_session.query(SaleItem).filter_by(sale_id=sale.id).all()
        assert [i.product_id for i in items] == [product_a.id]
        assert db_session.get(Product, product_b.id).stock == 1
        assert cart.is_empty

    def test_nested_checkout_of_same_cart_is_refused(self, db_session, kasir_a, product_a, monkeypatch):
        cart = Cart()
        cart.add_item(product_a)
        original = gateway.commit_sale
        principal = principal_for(kasir_a)

        def commit_with_resubmit(**kwargs):
            with pytest.raises(CheckoutStateError):
                checkout_service.commit(principal, cart, "qris")
            return original(**kwargs)

        monkeypatch.setattr(gateway, "commit_sale", commit_with_resubmit)
        checkout_service.commit(principal, cart, "qris")

        assert db_session.query(Sale).count() == 1
        assert db_session.get(Product, product_a.id).stock == 4

    def test_concurrent_edit_waits_for_commit(self, db_session, kasir_a, product_a, product_b, monkeypatch):
        cart = Cart()
        cart.add_item(product_a)
        offered_b = {"id": product_b.id, "name": product_b.name, "sell_price": "25000", "stock": 1}
        adder = threading.Thread(target=cart.add_item, args=(offered_b,))
        original = gateway.commit_sale

        def commit_while_other_request_adds(**kwargs):
            adder.start()
            time.sleep(0.05)
            assert product_b.id not in cart
            return original(**kwargs)

        monkeypatch.setattr(gateway, "commit_sale", commit_while_other_request_adds)
        sale = checkout_service.commit(principal_for(kasir_a), cart, "qris")
        adder.join(timeout=5)

        items = db_session.query(SaleItem).filter_by(sale_id=sale.id).all()
        assert [i.product_id for i in items] == [product_a.id]
        assert [item.product_id for item in cart] == [product_b.id]


class TestReceipt:
    def test_receipt_lines(self, db_session, kasir_a, product_a, product_b):
        sale = checkout_service.commit(principal_for(kasir_a), filled_cart(product_a, product_b), "cash", "50000")
        receipt = checkout_service.build_receipt(sale)

        assert receipt["sale_id"] == sale.id
        assert receipt["cashier_name"] == "Kasir A"
        assert receipt["store_name"] == "Toko A - Sumber Makmur"
        assert [line["product_name"] for line in receipt["items"]] == ["Product A", "Product B"]
        assert receipt["items"][0]["subtotal"] == "20000.00"
        assert receipt["payment_received"] == "50000.00"
