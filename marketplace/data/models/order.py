from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from marketplace.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_code = Column(String(20), nullable=False, unique=True)
    customer_id = Column(Integer, nullable=False, index=True)
    seller_id = Column(Integer, nullable=False, index=True)

    shipping_name = Column(String(200), nullable=False)
    shipping_email = Column(String(200), nullable=False)
    shipping_phone = Column(String(50), nullable=False)
    shipping_address = Column(String(500), nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_postal_code = Column(String(20), nullable=False)
    notes = Column(String(1000), nullable=True)

    payment_method = Column(String(10), nullable=False)  # CARD, QR, COD
    status = Column(String(40), nullable=False, default="PENDING")  # PENDING, AWAITING_VERIFICATION, CONFIRMED_PENDING_DELIVERY
    payment_status = Column(String(20), nullable=False, default="UNPAID")

    subtotal = Column(Integer, nullable=False)
    tax = Column(Integer, nullable=False)
    shipping_fee = Column(Integer, nullable=False)
    grand_total = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
