# marketplace/services/order_service.py
import uuid
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.data.models.inventory import InventoryModel
from marketplace.data.models.order import OrderModel
from marketplace.data.models.order_item import OrderItemModel
from marketplace.domain.checkout import (
    CartLine,
    CheckoutTotals,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    ShippingInfo,
)
from marketplace.domain.errors import (
    NotFound,
    PersistenceError,
    SellerNotFound,
    StockShortfall,
    ValidationError,
)
from marketplace.repos.inventory_repo import InventoryRepo
from marketplace.repos.order_repo import OrderRepo
from marketplace.services.notification_service import NotificationService
from marketplace.services.pricing import PricingPolicy, compute_totals
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def generate_order_code() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


def to_order(model: OrderModel) -> Order:
    return Order(
        order_id=model.id,
        order_code=model.order_code,
        customer_id=model.customer_id,
        seller_id=model.seller_id,
        line_items=tuple(
            OrderLine(product_id=i.product_id, quantity=i.quantity, unit_price=i.unit_price)
            for i in model.items
        ),
        shipping_info=ShippingInfo(
            name=model.shipping_name,
            email=model.shipping_email,
            phone=model.shipping_phone,
            address=model.shipping_address,
            city=model.shipping_city,
            postal_code=model.shipping_postal_code,
        ),
        notes=model.notes,
        payment_method=PaymentMethod(model.payment_method),
        status=OrderStatus(model.status),
        payment_status=model.payment_status,
        totals=CheckoutTotals(
            subtotal=model.subtotal,
            tax=model.tax,
            shipping=model.shipping_fee,
        ),
    )


class OrderService:
    """
    Order persistence for the checkout.

    One create_order call writes one seller's order: the order row, its item
    rows and the stock decrements of every product, all in one transaction.
    Any shortfall rolls the whole thing back, there is never an order with
    only some of its lines.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        pricing_policy: PricingPolicy | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.inventory = InventoryRepo(db)
        self.notification_service = notification_service or NotificationService()
        self.pricing_policy = pricing_policy or PricingPolicy.from_settings()

    def create_order(
        self,
        customer_id: int,
        seller_id: int,
        line_items: Iterable[CartLine],
        shipping_info: ShippingInfo,
        notes: str | None,
        payment_method: PaymentMethod,
    ) -> Order:
        lines = list(line_items)

        if not lines:
            raise ValidationError("An order needs at least one line item", seller_id=seller_id)

        foreign = [line.cart_line_id for line in lines if line.seller_id != seller_id]
        if foreign:
            raise ValidationError(
                f"Cart lines {foreign} do not belong to seller {seller_id}",
                seller_id=seller_id,
            )

        missing = shipping_info.missing_fields()
        if missing:
            raise ValidationError(f"Missing shipping fields: {', '.join(missing)}", seller_id=seller_id)

        totals = compute_totals(lines, self.pricing_policy)

        try:
            self._reserve_stock(seller_id, lines)

            order = OrderModel(
                order_code=generate_order_code(),
                customer_id=customer_id,
                seller_id=seller_id,
                shipping_name=shipping_info.name,
                shipping_email=shipping_info.email,
                shipping_phone=shipping_info.phone,
                shipping_address=shipping_info.address,
                shipping_city=shipping_info.city,
                shipping_postal_code=shipping_info.postal_code,
                notes=notes,
                payment_method=PaymentMethod(payment_method).value,
                status=OrderStatus.PENDING.value,
                payment_status="UNPAID",
                subtotal=totals.subtotal,
                tax=totals.tax,
                shipping_fee=totals.shipping,
                grand_total=totals.grand_total,
                items=[
                    OrderItemModel(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        line_total=line.line_total,
                    )
                    for line in lines
                ],
            )

            self.repo.add_order(order)
            self.repo.commit()

        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to persist order for seller {seller_id}: {e}")
            raise PersistenceError(f"Failed to persist order: {e}", seller_id=seller_id) from e
        except Exception:
            #shortfalls and anything unexpected: undo this group's stock decrements
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.id} ({order.order_code}) created for customer {customer_id}, "
            f"seller {seller_id}. Total: {order.grand_total}, Items: {len(lines)}"
        )

        self._notify(customer_id, order)

        return to_order(order)

    def _reserve_stock(self, seller_id: int, lines: list[CartLine]):
        #the same product twice in one group is decremented once with the summed quantity
        wanted: dict[int, int] = {}
        for line in lines:
            wanted[line.product_id] = wanted.get(line.product_id, 0) + line.quantity

        for product_id, quantity in wanted.items():
            rowcount = self.inventory.decrement_stock(product_id, seller_id, quantity)
            if rowcount:
                continue

            row = self.db.get(InventoryModel, product_id, populate_existing=True)
            if row is None or row.seller_id != seller_id:
                raise SellerNotFound(
                    f"Product {product_id} is not listed by seller {seller_id}",
                    seller_id=seller_id,
                )
            raise StockShortfall(
                product_id=product_id,
                requested=quantity,
                available=row.stock,
                seller_id=seller_id,
            )

    def _notify(self, customer_id: int, order: OrderModel):
        try:
            self.notification_service.send_order_notification(customer_id, order.id, order.seller_id)
        except Exception as e:
            #the order is committed, a broker outage must not turn it into a failure
            logger.warning(f"Could not enqueue notification for order {order.id}: {e}")

    def get_order(self, order_id: int, customer_id: int | None = None) -> Order:
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound(f"Order {order_id} does not exist")

        if customer_id is not None and order.customer_id != customer_id:
            raise PermissionError("No access to this order")

        return to_order(order)

    def list_orders(self, customer_id: int) -> list[Order]:
        return [to_order(o) for o in self.repo.list_for_customer(customer_id)]

    def update_status(self, order_id: int, expected: OrderStatus, new_status: OrderStatus) -> Order | None:
        """Move an order from ``expected`` to ``new_status``; None when it was not in ``expected``."""
        try:
            rowcount = self.repo.update_status_if(order_id, expected.value, new_status.value)
            if rowcount == 0:
                self.repo.rollback()
                return None
            self.repo.commit()

            order = self.repo.get_order(order_id)
            self.repo.refresh(order)
        except SQLAlchemyError as e:
            self.repo.rollback()
            raise PersistenceError(f"Failed to update order {order_id}: {e}") from e

        logger.info(f"Order {order_id} status {expected.value} -> {new_status.value}")
        return to_order(order)
