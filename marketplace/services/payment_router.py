# marketplace/services/payment_router.py
from marketplace.domain.checkout import (
    CardHandoff,
    Order,
    OrderStatus,
    PaymentMethod,
    RoutingResult,
)
from marketplace.domain.errors import RoutingError
from marketplace.services.order_service import OrderService
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

_TARGET_STATUS = {
    PaymentMethod.QR: OrderStatus.AWAITING_VERIFICATION,
    PaymentMethod.COD: OrderStatus.CONFIRMED_PENDING_DELIVERY,
}


class PaymentRouter:
    """
    Decides what happens to a freshly created order once its payment method is known.

    - CARD: hand-off descriptor for the separate card-capture step, no status change
    - QR:   PENDING -> AWAITING_VERIFICATION
    - COD:  PENDING -> CONFIRMED_PENDING_DELIVERY

    Only PENDING orders can be routed; routing twice is an error.
    """

    def __init__(self, order_service: OrderService):
        self.order_service = order_service

    def route(self, order: Order, payment_method: PaymentMethod) -> RoutingResult:
        method = PaymentMethod(payment_method)

        if order.status != OrderStatus.PENDING:
            raise RoutingError(
                f"Order {order.order_code} is {order.status.value}, only PENDING orders can be routed",
                seller_id=order.seller_id,
            )

        if method == PaymentMethod.CARD:
            handoff = CardHandoff(
                order_id=order.order_id,
                order_code=order.order_code,
                grand_total=order.grand_total,
            )
            logger.info(f"Order {order.order_code} handed off to card capture, amount {order.grand_total}")
            return RoutingResult(
                order_id=order.order_id,
                order_code=order.order_code,
                payment_method=method,
                status=order.status,
                handoff=handoff,
                message="Proceed to card payment",
            )

        target = _TARGET_STATUS[method]
        updated = self.order_service.update_status(order.order_id, OrderStatus.PENDING, target)

        #someone else moved it between our read and the conditional update
        if updated is None:
            raise RoutingError(
                f"Order {order.order_code} is no longer PENDING",
                seller_id=order.seller_id,
            )

        if method == PaymentMethod.QR:
            message = "Awaiting manual payment verification"
        else:
            message = "Payment will be collected on delivery"

        return RoutingResult(
            order_id=updated.order_id,
            order_code=updated.order_code,
            payment_method=method,
            status=updated.status,
            message=message,
        )
