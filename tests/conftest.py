import os

#must be set before marketplace.data.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import marketplace.data.models  # noqa: F401
from marketplace.data.database import Base
from marketplace.data.models import CartLineModel
from marketplace.domain.checkout import ShippingInfo
from marketplace.domain.errors import NotFound
from marketplace.repos.inventory_repo import InventoryRepo
from marketplace.services.checkout_orchestrator import CheckoutOrchestrator
from marketplace.services.order_service import OrderService
from marketplace.services.payment_router import PaymentRouter
from marketplace.services.pricing import PricingPolicy

SELLER_A = 10
SELLER_B = 20
SELLER_C = 30
CUSTOMER = 7


class FakeLockService:
    def __init__(self):
        self.held = {}
        self.calls = []

    def acquire_checkout_lock(self, customer_id, token, ttl):
        self.calls.append(("acquire", customer_id))
        if customer_id in self.held:
            return False
        self.held[customer_id] = token
        return True

    def release_checkout_lock(self, customer_id, token):
        self.calls.append(("release", customer_id))
        if self.held.get(customer_id) == token:
            del self.held[customer_id]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, customer_id, order_id, seller_id):
        self.sent.append((customer_id, order_id, seller_id))


class FakeProductClient:
    def __init__(self, products=None):
        self.products = products or {}

    def fetch_product(self, product_id):
        if product_id not in self.products:
            raise NotFound(f"Product {product_id} does not exist")
        return self.products[product_id]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture()
def policy():
    return PricingPolicy(
        tax_rate=Decimal("0.10"),
        shipping_fee=30000,
        free_shipping_threshold=500000,
        enable_free_shipping=True,
    )


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def lock_service():
    return FakeLockService()


@pytest.fixture()
def shipping():
    return ShippingInfo(
        name="Jane Doe",
        email="jane@example.com",
        phone="555-0100",
        address="1 Main St",
        city="Springfield",
        postal_code="12345",
    )


@pytest.fixture()
def stock(db):
    """stock(product_id, seller_id, quantity) -> sets an inventory row"""

    def _stock(product_id, seller_id, quantity):
        InventoryRepo(db).set_stock(product_id, seller_id, quantity)
        db.commit()

    return _stock


@pytest.fixture()
def add_line(db):
    """add_line(product_id, seller_id, unit_price, quantity, customer_id=CUSTOMER) -> cart line id"""

    def _add(product_id, seller_id, unit_price, quantity, customer_id=CUSTOMER):
        line = CartLineModel(
            customer_id=customer_id,
            product_id=product_id,
            seller_id=seller_id,
            unit_price=unit_price,
            quantity=quantity,
        )
        db.add(line)
        db.commit()
        return line.id

    return _add


@pytest.fixture()
def order_service(db, notifier, policy):
    return OrderService(db, notification_service=notifier, pricing_policy=policy)


@pytest.fixture()
def payment_router(order_service):
    return PaymentRouter(order_service)


@pytest.fixture()
def orchestrator(order_service, payment_router):
    return CheckoutOrchestrator(order_service, payment_router, card_strategy="representative")
