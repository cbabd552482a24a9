import pytest
from fastapi.testclient import TestClient

from marketplace.api.routers.carts import get_product_client
from marketplace.api.routers.checkout import get_lock_service
from marketplace.data.database import get_db
from marketplace.main import app
from marketplace.services.notification_service import NotificationService

from conftest import FakeProductClient

SELLER_A = 10
SELLER_B = 20
CUSTOMER = 7

PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "price": 100000, "seller_id": SELLER_A, "stock": 25},
    2: {"id": 2, "name": "Mouse", "price": 50000, "seller_id": SELLER_B, "stock": 40},
}

SHIPPING = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "555-0100",
    "address": "1 Main St",
    "city": "Springfield",
    "postal_code": "12345",
}


@pytest.fixture()
def client(db, lock_service, stock, monkeypatch):
    monkeypatch.setattr(
        NotificationService, "send_order_notification", staticmethod(lambda *args: None)
    )
    stock(1, SELLER_A, 10)
    stock(2, SELLER_B, 10)

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_product_client] = lambda: FakeProductClient(PRODUCTS)

    yield TestClient(app)

    app.dependency_overrides.clear()


def _fill_cart(client):
    assert client.post(f"/carts/{CUSTOMER}/items", json={"product_id": 1, "quantity": 2}).status_code == 200
    assert client.post(f"/carts/{CUSTOMER}/items", json={"product_id": 2, "quantity": 1}).status_code == 200


def _checkout(client, payment_method="COD", **extra):
    body = {"customer_id": CUSTOMER, "shipping_info": SHIPPING, "payment_method": payment_method}
    body.update(extra)
    return client.post("/checkout/", json=body)


class TestCartEndpoints:
    def test_add_and_read(self, client):
        _fill_cart(client)

        resp = client.get(f"/carts/{CUSTOMER}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["item_count"] == 3
        assert data["totals"]["subtotal"] == 250000

    def test_grouped(self, client):
        _fill_cart(client)

        data = client.get(f"/carts/{CUSTOMER}/grouped").json()

        assert [g["seller_id"] for g in data["groups"]] == [SELLER_A, SELLER_B]
        assert [g["totals"]["grand_total"] for g in data["groups"]] == [250000, 85000]

    def test_unknown_product_is_404(self, client):
        resp = client.post(f"/carts/{CUSTOMER}/items", json={"product_id": 99, "quantity": 1})

        assert resp.status_code == 404

    def test_over_stock_is_400(self, client):
        resp = client.post(f"/carts/{CUSTOMER}/items", json={"product_id": 1, "quantity": 11})

        assert resp.status_code == 400
        assert "Insufficient stock" in resp.json()["detail"]

    def test_remove_missing_item_is_404(self, client):
        assert client.delete(f"/carts/{CUSTOMER}/items/1").status_code == 404


class TestCheckoutEndpoint:
    def test_completed(self, client):
        _fill_cart(client)

        resp = _checkout(client, "COD", notes="ring twice")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "COMPLETED"
        assert data["success_count"] == 2
        assert data["message"] == "All 2 seller orders placed successfully"
        assert [o["status"] for o in data["created_orders"]] == ["CONFIRMED_PENDING_DELIVERY"] * 2
        assert [o["grand_total"] for o in data["created_orders"]] == [250000, 85000]
        assert data["created_orders"][0]["notes"] == "Payment method: Cash on delivery | ring twice"
        assert data["card_handoff"] is None
        assert client.get(f"/carts/{CUSTOMER}").json()["items"] == []

    def test_card_returns_handoff(self, client):
        _fill_cart(client)

        data = _checkout(client, "CARD").json()

        last = data["created_orders"][-1]
        assert data["card_handoff"]["order_id"] == last["order_id"]
        assert data["card_handoff"]["grand_total"] == last["grand_total"]

    def test_partial_is_200_with_failures(self, client, stock):
        _fill_cart(client)
        stock(1, SELLER_A, 1)

        resp = _checkout(client, "QR")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "PARTIALLY_COMPLETED"
        assert data["failures"] == [
            {
                "seller_id": SELLER_A,
                "reason": "STOCK_SHORTFALL",
                "detail": "Insufficient stock for product 1. Available: 1, Requested: 2",
            }
        ]

    def test_every_group_out_of_stock_is_200_failed(self, client, stock):
        _fill_cart(client)
        stock(1, SELLER_A, 0)
        stock(2, SELLER_B, 0)

        resp = _checkout(client, "COD")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "FAILED"
        assert data["error"] is None
        assert [f["seller_id"] for f in data["failures"]] == [SELLER_A, SELLER_B]
        assert len(client.get(f"/carts/{CUSTOMER}").json()["items"]) == 2

    def test_missing_shipping_field_is_400(self, client):
        _fill_cart(client)

        resp = _checkout(client, "COD", shipping_info={**SHIPPING, "city": ""})

        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["status"] == "FAILED"
        assert detail["created_orders"] == []
        assert "city" in detail["error"]["detail"]
        assert client.get(f"/orders/?customer_id={CUSTOMER}").json() == []

    def test_empty_cart_is_400(self, client):
        resp = _checkout(client, "COD")

        assert resp.status_code == 400
        assert resp.json()["detail"]["error"]["reason"] == "CART_EMPTY"

    def test_checkout_in_progress_is_409(self, client, lock_service):
        _fill_cart(client)
        lock_service.held[CUSTOMER] = "other"

        assert _checkout(client).status_code == 409


class TestOrderEndpoints:
    def test_list_and_get(self, client):
        _fill_cart(client)
        created = _checkout(client, "QR").json()["created_orders"]

        listed = client.get(f"/orders/?customer_id={CUSTOMER}").json()
        assert [o["order_id"] for o in listed] == [o["order_id"] for o in created]

        resp = client.get(f"/orders/{created[0]['order_id']}?customer_id={CUSTOMER}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "AWAITING_VERIFICATION"

    def test_other_customer_is_403(self, client):
        _fill_cart(client)
        order_id = _checkout(client).json()["created_orders"][0]["order_id"]

        assert client.get(f"/orders/{order_id}?customer_id={CUSTOMER + 1}").status_code == 403

    def test_missing_order_is_404(self, client):
        assert client.get(f"/orders/999?customer_id={CUSTOMER}").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
