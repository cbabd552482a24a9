# marketplace/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from marketplace.data.models.cart_line import CartLineModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, customer_id: int) -> list[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel)
                .where(CartLineModel.customer_id == customer_id)
                .order_by(CartLineModel.id)
            ).scalars()
        )

    def get_line(self, customer_id: int, product_id: int) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.customer_id == customer_id,
                CartLineModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_line(self, line: CartLineModel) -> CartLineModel:
        self.db.add(line)
        self.db.flush()
        return line

    def delete_line(self, customer_id: int, product_id: int) -> int:
        result = self.db.execute(
            delete(CartLineModel).where(
                CartLineModel.customer_id == customer_id,
                CartLineModel.product_id == product_id,
            )
        )
        return result.rowcount

    def delete_lines(self, customer_id: int, line_ids: list[int]) -> int:
        if not line_ids:
            return 0
        #customer_id in the filter so nobody removes someone else's lines by id
        result = self.db.execute(
            delete(CartLineModel).where(
                CartLineModel.customer_id == customer_id,
                CartLineModel.id.in_(line_ids),
            )
        )
        return result.rowcount

    def delete_all(self, customer_id: int) -> int:
        result = self.db.execute(
            delete(CartLineModel).where(CartLineModel.customer_id == customer_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
