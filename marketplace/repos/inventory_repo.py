# marketplace/repos/inventory_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from marketplace.data.models.inventory import InventoryModel


class InventoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> InventoryModel | None:
        return self.db.get(InventoryModel, product_id)

    def stock_by_product(self, product_ids: list[int]) -> dict[int, int]:
        if not product_ids:
            return {}
        rows = self.db.execute(
            select(InventoryModel.product_id, InventoryModel.stock).where(
                InventoryModel.product_id.in_(product_ids)
            )
        ).all()
        return {product_id: stock for product_id, stock in rows}

    def decrement_stock(self, product_id: int, seller_id: int, quantity: int) -> int:
        """
        Check-and-decrement in one statement:
        update inventory set stock = stock - q where product_id = p and seller_id = s and stock >= q
        rowcount 0 means the row is missing, belongs to another seller or has too little stock.
        """
        result = self.db.execute(
            update(InventoryModel)
            .where(
                InventoryModel.product_id == product_id,
                InventoryModel.seller_id == seller_id,
                InventoryModel.stock >= quantity,
            )
            .values(stock=InventoryModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_stock(self, product_id: int, seller_id: int, stock: int) -> InventoryModel:
        row = self.get(product_id)
        if row is None:
            row = InventoryModel(product_id=product_id, seller_id=seller_id, stock=stock)
            self.db.add(row)
        else:
            row.seller_id = seller_id
            row.stock = stock
        self.db.flush()
        return row
