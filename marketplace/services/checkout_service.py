# marketplace/services/checkout_service.py
import threading
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from marketplace.domain.checkout import CheckoutOutcome, PaymentMethod, ShippingInfo
from marketplace.domain.errors import CheckoutInProgress
from marketplace.services.cart_service import CartService
from marketplace.services.checkout_orchestrator import CheckoutOrchestrator
from marketplace.services.grouping import group_by_seller
from marketplace.services.lock_service import LockService
from marketplace.services.order_service import OrderService
from marketplace.services.payment_router import PaymentRouter
from marketplace.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Checkout use case as seen by the API.

    1. takes the customer's checkout lock
    2. loads a cart snapshot and splits it per seller
    3. runs the orchestrator
    4. removes the lines of every seller whose order was created, so a retry
       only sees what failed
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        cart_service: CartService | None = None,
        order_service: OrderService | None = None,
        orchestrator: CheckoutOrchestrator | None = None,
        lock_ttl: int = CHECKOUT_LOCK_TTL_SECONDS,
    ):
        self.lock_service = lock_service
        self.cart_service = cart_service or CartService(db)
        order_service = order_service or OrderService(db)
        self.orchestrator = orchestrator or CheckoutOrchestrator(
            order_service=order_service,
            payment_router=PaymentRouter(order_service),
        )
        self.lock_ttl = lock_ttl

    def checkout(
        self,
        customer_id: int,
        shipping_info: ShippingInfo,
        payment_method: PaymentMethod | str,
        seller_filter: Optional[int] = None,
        notes: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CheckoutOutcome:
        token = uuid.uuid4().hex

        if not self.lock_service.acquire_checkout_lock(customer_id, token, self.lock_ttl):
            raise CheckoutInProgress(f"A checkout for customer {customer_id} is already running")

        try:
            lines = self.cart_service.get_cart_lines(customer_id)
            grouping = group_by_seller(lines, seller_filter)

            logger.info(
                f"Checkout for customer {customer_id}: {len(lines)} cart lines, "
                f"{len(grouping.groups)} seller groups, seller filter {seller_filter}"
            )

            outcome = self.orchestrator.checkout(
                customer_id=customer_id,
                seller_groups=grouping.groups,
                shipping_info=shipping_info,
                payment_method=payment_method,
                notes=notes,
                skipped_lines=grouping.skipped,
                cancel_event=cancel_event,
            )

            ordered_sellers = {o.seller_id for o in outcome.created_orders}
            ordered_lines = [
                line_id
                for g in grouping.groups
                if g.seller_id in ordered_sellers
                for line_id in g.line_ids
            ]
            if ordered_lines:
                self.cart_service.clear_lines(customer_id, ordered_lines)

            return outcome
        finally:
            self.lock_service.release_checkout_lock(customer_id, token)
