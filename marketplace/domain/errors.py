# marketplace/domain/errors.py
"""
Checkout error taxonomy.

Group-level errors (StockShortfall, SellerNotFound, PersistenceError) are
caught by the orchestrator and turned into per-seller failure entries.
ValidationError stops a checkout before anything is written. RoutingError
never undoes a created order, it is reported as a warning.
"""


class CheckoutError(Exception):
    code = "CHECKOUT_ERROR"

    def __init__(self, message: str, seller_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.seller_id = seller_id


class ValidationError(CheckoutError, ValueError):
    code = "VALIDATION_ERROR"


class CartEmpty(ValidationError):
    code = "CART_EMPTY"


class NotFound(CheckoutError, LookupError):
    code = "NOT_FOUND"


class StockShortfall(CheckoutError):
    code = "STOCK_SHORTFALL"

    def __init__(
        self,
        product_id: int,
        requested: int,
        available: int,
        seller_id: int | None = None,
    ):
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Available: {available}, Requested: {requested}",
            seller_id=seller_id,
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class SellerNotFound(CheckoutError):
    code = "SELLER_NOT_FOUND"


class PersistenceError(CheckoutError):
    code = "PERSISTENCE_ERROR"


class RoutingError(CheckoutError):
    code = "ROUTING_ERROR"


class CheckoutCancelled(CheckoutError):
    code = "CANCELLED"


class CheckoutInProgress(CheckoutError):
    code = "CHECKOUT_IN_PROGRESS"
