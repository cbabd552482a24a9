# marketplace/domain/checkout.py
"""
Value types passed between the checkout components.

Everything here is an immutable snapshot: the cart store hands out CartLine
tuples, the order store hands out Order snapshots, and the orchestrator
returns a CheckoutOutcome. Nothing in this module talks to the database.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from marketplace.domain.errors import ValidationError


class PaymentMethod(str, Enum):
    CARD = "CARD"
    QR = "QR"
    COD = "COD"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    AWAITING_VERIFICATION = "AWAITING_VERIFICATION"
    CONFIRMED_PENDING_DELIVERY = "CONFIRMED_PENDING_DELIVERY"


class CheckoutState(str, Enum):
    COLLECTING = "COLLECTING"
    VALIDATING = "VALIDATING"
    PER_GROUP_COMMIT = "PER_GROUP_COMMIT"
    ROUTING = "ROUTING"
    COMPLETED = "COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    FAILED = "FAILED"


class CheckoutStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    FAILED = "FAILED"


REQUIRED_SHIPPING_FIELDS = ("name", "email", "phone", "address", "city", "postal_code")


@dataclass(frozen=True)
class CartLine:
    cart_line_id: int
    product_id: int
    seller_id: Optional[int]
    unit_price: int
    quantity: int
    stock_available: int = 0

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError(f"Cart line {self.cart_line_id}: quantity must be at least 1")
        if self.unit_price < 0:
            raise ValidationError(f"Cart line {self.cart_line_id}: unit price must be non-negative")

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class SellerGroup:
    seller_id: int
    lines: Tuple[CartLine, ...]

    @property
    def subtotal(self) -> int:
        return sum(line.line_total for line in self.lines)

    @property
    def line_ids(self) -> Tuple[int, ...]:
        return tuple(line.cart_line_id for line in self.lines)


@dataclass(frozen=True)
class GroupingResult:
    groups: Tuple[SellerGroup, ...]
    #lines without a seller, they cannot go through multi-seller checkout
    skipped: Tuple[CartLine, ...] = ()


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: int
    tax: int
    shipping: int

    @property
    def grand_total(self) -> int:
        return self.subtotal + self.tax + self.shipping


@dataclass(frozen=True)
class ShippingInfo:
    name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str

    def missing_fields(self) -> list[str]:
        return [f for f in REQUIRED_SHIPPING_FIELDS if not (getattr(self, f) or "").strip()]


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: int
    order_code: str
    customer_id: int
    seller_id: int
    line_items: Tuple[OrderLine, ...]
    shipping_info: ShippingInfo
    notes: Optional[str]
    payment_method: PaymentMethod
    status: OrderStatus
    payment_status: str
    totals: CheckoutTotals

    @property
    def grand_total(self) -> int:
        return self.totals.grand_total


@dataclass(frozen=True)
class GroupFailure:
    seller_id: Optional[int]
    reason: str
    detail: str = ""


@dataclass(frozen=True)
class RoutingWarning:
    order_id: int
    seller_id: int
    reason: str
    detail: str = ""


@dataclass(frozen=True)
class CardHandoff:
    order_id: int
    order_code: str
    grand_total: int


@dataclass(frozen=True)
class RoutingResult:
    order_id: int
    order_code: str
    payment_method: PaymentMethod
    status: OrderStatus
    handoff: Optional[CardHandoff] = None
    message: str = ""


@dataclass(frozen=True)
class CheckoutOutcome:
    status: CheckoutStatus
    total_groups: int
    created_orders: Tuple[Order, ...] = ()
    failures: Tuple[GroupFailure, ...] = ()
    warnings: Tuple[RoutingWarning, ...] = ()
    skipped_lines: Tuple[CartLine, ...] = ()
    card_handoffs: Tuple[CardHandoff, ...] = ()
    #set only when the attempt was rejected before any order was written
    error: Optional[GroupFailure] = None
    state_trail: Tuple[CheckoutState, ...] = field(default=(), compare=False)

    @property
    def success_count(self) -> int:
        return len(self.created_orders)

    @property
    def card_handoff(self) -> Optional[CardHandoff]:
        return self.card_handoffs[-1] if self.card_handoffs else None

    @property
    def message(self) -> str:
        if self.status == CheckoutStatus.COMPLETED:
            if self.total_groups == 1:
                return "Order placed successfully"
            return f"All {self.total_groups} seller orders placed successfully"

        if self.status == CheckoutStatus.PARTIALLY_COMPLETED:
            details = "; ".join(
                f"seller {f.seller_id}: {f.detail or f.reason}" for f in self.failures
            )
            return (
                f"{self.success_count} of {self.total_groups} seller orders placed. "
                f"Failed: {details}"
            )

        if self.error is not None:
            return f"Checkout failed: {self.error.detail or self.error.reason}"
        return "Checkout failed, no orders were placed"
