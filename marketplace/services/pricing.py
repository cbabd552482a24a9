# marketplace/services/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol

from marketplace.domain.checkout import CheckoutTotals
from marketplace.utils import settings


class PricedLine(Protocol):
    unit_price: int
    quantity: int


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.10")
    shipping_fee: int = 30000
    free_shipping_threshold: int = 500000
    enable_free_shipping: bool = True

    @classmethod
    def from_settings(cls) -> "PricingPolicy":
        return cls(
            tax_rate=settings.TAX_RATE,
            shipping_fee=settings.SHIPPING_FEE,
            free_shipping_threshold=settings.FREE_SHIPPING_THRESHOLD,
            enable_free_shipping=settings.ENABLE_FREE_SHIPPING,
        )

    def tax_for(self, subtotal: int) -> int:
        #half-up to whole minor units
        return int((Decimal(subtotal) * self.tax_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def shipping_for(self, subtotal: int) -> int:
        if self.enable_free_shipping and subtotal >= self.free_shipping_threshold:
            return 0
        return self.shipping_fee


def compute_totals(lines: Iterable[PricedLine], policy: PricingPolicy | None = None) -> CheckoutTotals:
    """Subtotal, tax, shipping for any set of lines (one seller's or the whole cart)."""
    policy = policy or PricingPolicy.from_settings()
    lines = list(lines)

    if not lines:
        return CheckoutTotals(subtotal=0, tax=0, shipping=0)

    subtotal = sum(line.unit_price * line.quantity for line in lines)

    return CheckoutTotals(
        subtotal=subtotal,
        tax=policy.tax_for(subtotal),
        shipping=policy.shipping_for(subtotal),
    )
