# marketplace/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from marketplace.domain.checkout import CheckoutStatus, OrderStatus, PaymentMethod, ShippingInfo


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    quantity: int = Field(..., gt=0, description="Quantity (must be > 0)")


class QuantityIn(BaseModel):
    """Setting the quantity of a cart line."""

    quantity: int = Field(..., gt=0, description="New quantity (must be > 0)")


class ShippingInfoIn(BaseModel):
    """
    Shipping details. Empty fields pass here, the checkout rejects them and
    answers with a FAILED outcome.
    """

    name: str = Field("", max_length=200)
    email: str = Field("", max_length=200)
    phone: str = Field("", max_length=50)
    address: str = Field("", max_length=500)
    city: str = Field("", max_length=100)
    postal_code: str = Field("", max_length=20)

    def to_domain(self) -> ShippingInfo:
        return ShippingInfo(**self.model_dump())


class CheckoutIn(BaseModel):
    """Checkout request: whole cart, or one seller's items when seller_id is set."""

    customer_id: int = Field(..., gt=0, description="Customer ID (must be > 0)")
    seller_id: Optional[int] = Field(None, gt=0, description="Check out only this seller's items")
    shipping_info: ShippingInfoIn
    payment_method: str = Field(..., description="CARD, QR or COD")
    notes: Optional[str] = Field(None, max_length=500)


class TotalsOut(BaseModel):
    subtotal: int
    tax: int
    shipping: int
    grand_total: int

    model_config = ConfigDict(from_attributes=True)


class CartLineOut(BaseModel):
    cart_line_id: int
    product_id: int
    seller_id: Optional[int]
    unit_price: int
    quantity: int
    stock_available: int
    line_total: int

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    customer_id: int
    items: List[CartLineOut]
    item_count: int
    totals: TotalsOut


class SellerGroupOut(BaseModel):
    seller_id: int
    items: List[CartLineOut]
    totals: TotalsOut


class GroupedCartOut(BaseModel):
    customer_id: int
    groups: List[SellerGroupOut]
    skipped_items: List[CartLineOut]
    totals: TotalsOut


class OrderLineOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: int
    line_total: int

    model_config = ConfigDict(from_attributes=True)


class ShippingInfoOut(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    order_id: int
    order_code: str
    customer_id: int
    seller_id: int
    line_items: List[OrderLineOut]
    shipping_info: ShippingInfoOut
    notes: Optional[str]
    payment_method: PaymentMethod
    status: OrderStatus
    payment_status: str
    totals: TotalsOut
    grand_total: int

    model_config = ConfigDict(from_attributes=True)


class GroupFailureOut(BaseModel):
    seller_id: Optional[int]
    reason: str
    detail: str

    model_config = ConfigDict(from_attributes=True)


class RoutingWarningOut(BaseModel):
    order_id: int
    seller_id: int
    reason: str
    detail: str

    model_config = ConfigDict(from_attributes=True)


class CardHandoffOut(BaseModel):
    order_id: int
    order_code: str
    grand_total: int

    model_config = ConfigDict(from_attributes=True)


class CheckoutOutcomeOut(BaseModel):
    status: CheckoutStatus
    message: str
    total_groups: int
    success_count: int
    created_orders: List[OrderOut]
    failures: List[GroupFailureOut]
    warnings: List[RoutingWarningOut]
    skipped_lines: List[CartLineOut]
    card_handoff: Optional[CardHandoffOut] = None
    card_handoffs: List[CardHandoffOut]
    error: Optional[GroupFailureOut] = None

    model_config = ConfigDict(from_attributes=True)
