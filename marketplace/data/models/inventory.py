from sqlalchemy import Column, Integer, CheckConstraint

from marketplace.data.database import Base


class InventoryModel(Base):
    """Stock row per product, the only shared counter touched by checkout."""

    __tablename__ = "inventory"

    product_id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),)
