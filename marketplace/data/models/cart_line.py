#marketplace/data/models/cart_line.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, DateTime, UniqueConstraint

from marketplace.data.database import Base


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    #nullable, lines without a seller are reported as skipped at checkout
    seller_id = Column(Integer, nullable=True)

    #price snapshot in minor units at add-to-cart time
    unit_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("customer_id", "product_id", name="u_customer_product"),)
