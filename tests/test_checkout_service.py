import threading

import pytest
from sqlalchemy.exc import OperationalError

from marketplace.domain.checkout import CheckoutStatus, PaymentMethod
from marketplace.domain.errors import CheckoutInProgress
from marketplace.services.cart_service import CartService
from marketplace.services.checkout_service import CheckoutService

from conftest import FakeProductClient

SELLER_A = 10
SELLER_B = 20
CUSTOMER = 7


@pytest.fixture()
def service(db, lock_service, policy, order_service, orchestrator):
    cart_service = CartService(db, product_client=FakeProductClient(), pricing_policy=policy)
    return CheckoutService(
        db,
        lock_service,
        cart_service=cart_service,
        order_service=order_service,
        orchestrator=orchestrator,
        lock_ttl=30,
    )


@pytest.fixture()
def filled_cart(stock, add_line):
    stock(1, SELLER_A, 10)
    stock(2, SELLER_B, 10)
    add_line(1, SELLER_A, 100000, 2)
    add_line(2, SELLER_B, 50000, 1)


class TestCheckout:
    def test_orders_every_seller_and_empties_the_cart(self, service, filled_cart, shipping):
        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert outcome.status == CheckoutStatus.COMPLETED
        assert outcome.success_count == 2
        assert service.cart_service.get_cart_lines(CUSTOMER) == []

    def test_second_checkout_does_not_duplicate_orders(self, service, order_service, filled_cart, shipping):
        service.checkout(CUSTOMER, shipping, PaymentMethod.QR)

        again = service.checkout(CUSTOMER, shipping, PaymentMethod.QR)

        assert again.status == CheckoutStatus.FAILED
        assert again.error.reason == "CART_EMPTY"
        assert len(order_service.list_orders(CUSTOMER)) == 2

    def test_failed_seller_lines_stay_in_the_cart(self, service, stock, add_line, shipping):
        stock(1, SELLER_A, 1)
        stock(2, SELLER_B, 10)
        add_line(1, SELLER_A, 100000, 2)
        add_line(2, SELLER_B, 50000, 1)

        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.QR)

        assert outcome.status == CheckoutStatus.PARTIALLY_COMPLETED
        remaining = service.cart_service.get_cart_lines(CUSTOMER)
        assert [(line.product_id, line.seller_id) for line in remaining] == [(1, SELLER_A)]

    def test_seller_filter(self, service, filled_cart, shipping):
        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.COD, seller_filter=SELLER_B)

        assert [o.seller_id for o in outcome.created_orders] == [SELLER_B]
        assert outcome.total_groups == 1
        remaining = service.cart_service.get_cart_lines(CUSTOMER)
        assert [line.seller_id for line in remaining] == [SELLER_A]

    def test_lines_without_seller_are_reported_and_kept(self, service, filled_cart, add_line, shipping):
        add_line(5, None, 120000, 1)

        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert outcome.status == CheckoutStatus.COMPLETED
        assert [line.product_id for line in outcome.skipped_lines] == [5]
        assert [line.product_id for line in service.cart_service.get_cart_lines(CUSTOMER)] == [5]

    def test_status_read_failure_after_routing_still_empties_the_cart(
        self, service, order_service, filled_cart, shipping, monkeypatch
    ):
        def broken_refresh(order):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(order_service.repo, "refresh", broken_refresh)

        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert outcome.status == CheckoutStatus.COMPLETED
        assert [w.reason for w in outcome.warnings] == ["PERSISTENCE_ERROR", "PERSISTENCE_ERROR"]
        assert service.cart_service.get_cart_lines(CUSTOMER) == []

        again = service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert again.error.reason == "CART_EMPTY"
        assert len(order_service.list_orders(CUSTOMER)) == 2

    def test_cancel_event_is_passed_through(self, service, filled_cart, shipping):
        cancel = threading.Event()
        cancel.set()

        outcome = service.checkout(CUSTOMER, shipping, PaymentMethod.COD, cancel_event=cancel)

        assert outcome.status == CheckoutStatus.FAILED
        assert {f.reason for f in outcome.failures} == {"CANCELLED"}
        assert len(service.cart_service.get_cart_lines(CUSTOMER)) == 2


class TestLocking:
    def test_lock_is_taken_and_released(self, service, lock_service, filled_cart, shipping):
        service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert lock_service.calls == [("acquire", CUSTOMER), ("release", CUSTOMER)]
        assert lock_service.held == {}

    def test_running_checkout_blocks_another(self, service, lock_service, order_service, filled_cart, shipping):
        lock_service.held[CUSTOMER] = "someone-else"

        with pytest.raises(CheckoutInProgress):
            service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert order_service.list_orders(CUSTOMER) == []
        assert lock_service.held == {CUSTOMER: "someone-else"}

    def test_lock_released_when_checkout_raises(self, service, lock_service, filled_cart, shipping, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("db gone")

        monkeypatch.setattr(service.cart_service, "get_cart_lines", boom)

        with pytest.raises(RuntimeError):
            service.checkout(CUSTOMER, shipping, PaymentMethod.COD)

        assert lock_service.held == {}
