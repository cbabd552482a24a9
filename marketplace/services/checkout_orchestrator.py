# marketplace/services/checkout_orchestrator.py
import dataclasses
import threading
from enum import Enum
from typing import Iterable, Optional

from marketplace.domain.checkout import (
    CartLine,
    CheckoutOutcome,
    CheckoutState,
    CheckoutStatus,
    GroupFailure,
    Order,
    PaymentMethod,
    RoutingWarning,
    SellerGroup,
    ShippingInfo,
)
from marketplace.domain.errors import (
    CartEmpty,
    CheckoutCancelled,
    CheckoutError,
    PersistenceError,
    RoutingError,
    ValidationError,
)
from marketplace.services.order_service import OrderService
from marketplace.services.payment_router import PaymentRouter
from marketplace.utils import settings
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class CardHandoffStrategy(str, Enum):
    #only the most recently created order goes to card capture, the rest stay PENDING
    REPRESENTATIVE = "representative"
    #every created order gets its own card capture hand-off, in creation order
    PER_ORDER = "per_order"


PAYMENT_NOTES = {
    PaymentMethod.CARD: "Payment method: Card (awaiting card capture)",
    PaymentMethod.QR: "Payment method: QR transfer (awaiting manual verification)",
    PaymentMethod.COD: "Payment method: Cash on delivery",
}


def build_notes(payment_method: PaymentMethod, notes: Optional[str]) -> str:
    annotation = PAYMENT_NOTES[payment_method]
    if notes and notes.strip():
        return f"{annotation} | {notes.strip()}"
    return annotation


class CheckoutOrchestrator:
    """
    Turns seller groups into orders, one order per seller.

    States: COLLECTING -> VALIDATING -> PER_GROUP_COMMIT -> ROUTING ->
    COMPLETED | PARTIALLY_COMPLETED | FAILED

    Validation problems stop the attempt before anything is written. After
    that every group is committed on its own: an error in one seller's group
    becomes a failure entry and the loop moves on. Groups are committed
    sequentially in the order given. The orchestrator keeps no state between
    calls, removing ordered lines from the cart is the caller's job.
    """

    def __init__(
        self,
        order_service: OrderService,
        payment_router: PaymentRouter,
        card_strategy: CardHandoffStrategy | str | None = None,
    ):
        self.order_service = order_service
        self.payment_router = payment_router
        self.card_strategy = CardHandoffStrategy(card_strategy or settings.CARD_HANDOFF_STRATEGY)

    def checkout(
        self,
        customer_id: int,
        seller_groups: Iterable[SellerGroup],
        shipping_info: ShippingInfo,
        payment_method: PaymentMethod | str,
        notes: Optional[str] = None,
        skipped_lines: Iterable[CartLine] = (),
        cancel_event: Optional[threading.Event] = None,
    ) -> CheckoutOutcome:
        trail = [CheckoutState.COLLECTING]
        groups = tuple(seller_groups)
        skipped = tuple(skipped_lines)

        trail.append(CheckoutState.VALIDATING)
        try:
            method = self._validate(groups, shipping_info, payment_method)
        except ValidationError as e:
            logger.warning(f"Checkout rejected for customer {customer_id}: {e.message}")
            trail.append(CheckoutState.FAILED)
            return CheckoutOutcome(
                status=CheckoutStatus.FAILED,
                total_groups=len(groups),
                failures=tuple(
                    GroupFailure(seller_id=g.seller_id, reason=e.code, detail=e.message) for g in groups
                ),
                skipped_lines=skipped,
                error=GroupFailure(seller_id=None, reason=e.code, detail=e.message),
                state_trail=tuple(trail),
            )

        trail.append(CheckoutState.PER_GROUP_COMMIT)
        created, failures = self._commit_groups(customer_id, groups, shipping_info, method, notes, cancel_event)

        if not created:
            status = CheckoutStatus.FAILED
        elif len(created) == len(groups):
            status = CheckoutStatus.COMPLETED
        else:
            status = CheckoutStatus.PARTIALLY_COMPLETED

        handoffs: list = []
        warnings: list = []
        if created:
            trail.append(CheckoutState.ROUTING)
            created, handoffs, warnings = self._route(created, method)

        trail.append(CheckoutState(status.value))

        logger.info(
            f"Checkout for customer {customer_id} finished {status.value}: "
            f"{len(created)}/{len(groups)} seller orders, {len(warnings)} routing warnings"
        )

        return CheckoutOutcome(
            status=status,
            total_groups=len(groups),
            created_orders=tuple(created),
            failures=tuple(failures),
            warnings=tuple(warnings),
            skipped_lines=skipped,
            card_handoffs=tuple(handoffs),
            state_trail=tuple(trail),
        )

    def _validate(self, groups, shipping_info: ShippingInfo, payment_method) -> PaymentMethod:
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        missing = shipping_info.missing_fields()
        if missing:
            raise ValidationError(f"Missing shipping fields: {', '.join(missing)}")

        if not groups:
            raise CartEmpty("Cart is empty. Cannot checkout with an empty cart.")

        return method

    def _commit_groups(self, customer_id, groups, shipping_info, method, notes, cancel_event):
        created: list[Order] = []
        failures: list[GroupFailure] = []
        annotated = build_notes(method, notes)

        for index, group in enumerate(groups):
            #cancellation is honoured between commits, never in the middle of one
            if cancel_event is not None and cancel_event.is_set():
                remaining = groups[index:]
                logger.warning(
                    f"Checkout for customer {customer_id} cancelled, "
                    f"{len(remaining)} seller groups not attempted"
                )
                failures.extend(
                    GroupFailure(
                        seller_id=g.seller_id,
                        reason=CheckoutCancelled.code,
                        detail="Checkout was cancelled before this seller's order was placed",
                    )
                    for g in remaining
                )
                break

            try:
                order = self.order_service.create_order(
                    customer_id=customer_id,
                    seller_id=group.seller_id,
                    line_items=group.lines,
                    shipping_info=shipping_info,
                    notes=annotated,
                    payment_method=method,
                )
            except CheckoutError as e:
                logger.warning(f"Order for seller {group.seller_id} failed ({e.code}): {e.message}")
                failures.append(GroupFailure(seller_id=group.seller_id, reason=e.code, detail=e.message))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error creating order for seller {group.seller_id}")
                failures.append(
                    GroupFailure(seller_id=group.seller_id, reason=PersistenceError.code, detail=str(e))
                )
                continue

            created.append(order)

        return created, failures

    def _route(self, created: list[Order], method: PaymentMethod):
        handoffs = []
        warnings = []

        if method == PaymentMethod.CARD and self.card_strategy == CardHandoffStrategy.REPRESENTATIVE:
            to_route = [created[-1]]
        else:
            to_route = list(created)

        routed = {o.order_id: o for o in created}

        for order in to_route:
            try:
                result = self.payment_router.route(order, method)
            except CheckoutError as e:
                logger.warning(f"Routing {order.order_code} via {method.value} failed: {e.message}")
                warnings.append(
                    RoutingWarning(order_id=order.order_id, seller_id=order.seller_id, reason=e.code, detail=e.message)
                )
                continue
            except Exception as e:
                #the order is committed, a routing fault never aborts the checkout
                logger.exception(f"Unexpected error routing {order.order_code} via {method.value}")
                warnings.append(
                    RoutingWarning(
                        order_id=order.order_id,
                        seller_id=order.seller_id,
                        reason=RoutingError.code,
                        detail=str(e),
                    )
                )
                continue

            if result.handoff is not None:
                handoffs.append(result.handoff)
            routed[order.order_id] = dataclasses.replace(order, status=result.status)

        return [routed[o.order_id] for o in created], handoffs, warnings
