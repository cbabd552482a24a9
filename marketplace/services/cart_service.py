from typing import Dict, Any
from sqlalchemy.orm import Session

from marketplace.data.models.cart_line import CartLineModel
from marketplace.domain.checkout import CartLine
from marketplace.domain.errors import NotFound, StockShortfall, ValidationError
from marketplace.repos.cart_repo import CartRepo
from marketplace.repos.inventory_repo import InventoryRepo
from marketplace.services.grouping import group_by_seller
from marketplace.services.pricing import PricingPolicy, compute_totals
from marketplace.services.product_client import ProductClient
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _totals_dict(totals) -> Dict[str, int]:
    return {
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "shipping": totals.shipping,
        "grand_total": totals.grand_total,
    }


def _line_dict(line: CartLine) -> Dict[str, Any]:
    return {
        "cart_line_id": line.cart_line_id,
        "product_id": line.product_id,
        "seller_id": line.seller_id,
        "unit_price": line.unit_price,
        "quantity": line.quantity,
        "stock_available": line.stock_available,
        "line_total": line.line_total,
    }


class CartService:
    """
    Cart store, one cart per customer.
    commands (add, update, remove, clear, clear_lines) change state,
    queries (get_cart_lines, get_cart, get_grouped_cart) only read.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient | None = None,
        pricing_policy: PricingPolicy | None = None,
    ):
        self.repo = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.product_client = product_client or ProductClient()
        self.pricing_policy = pricing_policy or PricingPolicy.from_settings()

    #queries
    def get_cart_lines(self, customer_id: int) -> list[CartLine]:
        """Snapshot of the cart with stock refreshed from inventory."""
        rows = self.repo.get_lines(customer_id)
        stock = self.inventory.stock_by_product([r.product_id for r in rows])

        return [
            CartLine(
                cart_line_id=r.id,
                product_id=r.product_id,
                seller_id=r.seller_id,
                unit_price=r.unit_price,
                quantity=r.quantity,
                stock_available=stock.get(r.product_id, 0),
            )
            for r in rows
        ]

    def get_cart(self, customer_id: int) -> Dict[str, Any]:
        lines = self.get_cart_lines(customer_id)
        totals = compute_totals(lines, self.pricing_policy)

        return {
            "customer_id": customer_id,
            "items": [_line_dict(line) for line in lines],
            "item_count": sum(line.quantity for line in lines),
            "totals": _totals_dict(totals),
        }

    def get_grouped_cart(self, customer_id: int) -> Dict[str, Any]:
        lines = self.get_cart_lines(customer_id)
        grouping = group_by_seller(lines)

        return {
            "customer_id": customer_id,
            "groups": [
                {
                    "seller_id": g.seller_id,
                    "items": [_line_dict(line) for line in g.lines],
                    "totals": _totals_dict(compute_totals(g.lines, self.pricing_policy)),
                }
                for g in grouping.groups
            ],
            "skipped_items": [_line_dict(line) for line in grouping.skipped],
            "totals": _totals_dict(compute_totals(lines, self.pricing_policy)),
        }

    #commands
    def add_product(self, customer_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        #catalogue gives the price snapshot and the seller
        logger.info(f"Fetching product {product_id} from product-service")
        pdata = self.product_client.fetch_product(product_id)
        price = int(pdata["price"])
        seller_id = pdata.get("seller_id")

        existing = self.repo.get_line(customer_id, product_id)
        total_quantity = (existing.quantity if existing else 0) + quantity
        available = self._available(product_id, pdata)

        if total_quantity > available:
            raise StockShortfall(product_id=product_id, requested=total_quantity, available=available)

        if existing:
            logger.info(
                f"Product {product_id} already in cart of customer {customer_id}, "
                f"quantity {existing.quantity} -> {total_quantity}"
            )
            existing.quantity = total_quantity
            existing.unit_price = price
            existing.seller_id = seller_id
        else:
            logger.info(f"Adding product {product_id} to cart of customer {customer_id}")
            self.repo.add_line(
                CartLineModel(
                    customer_id=customer_id,
                    product_id=product_id,
                    seller_id=seller_id,
                    unit_price=price,
                    quantity=quantity,
                )
            )

        self.repo.commit()
        return self.get_cart(customer_id)

    def update_quantity(self, customer_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0. Use remove to delete items")

        line = self.repo.get_line(customer_id, product_id)
        if not line:
            raise NotFound(f"Product {product_id} is not in the cart")

        available = self.inventory.stock_by_product([product_id]).get(product_id, 0)
        if quantity > available:
            raise StockShortfall(product_id=product_id, requested=quantity, available=available)

        line.quantity = quantity
        self.repo.commit()

        logger.info(f"Customer {customer_id} set product {product_id} quantity to {quantity}")
        return self.get_cart(customer_id)

    def remove_product(self, customer_id: int, product_id: int) -> Dict[str, Any]:
        removed = self.repo.delete_line(customer_id, product_id)
        if not removed:
            self.repo.rollback()
            raise NotFound(f"Product {product_id} is not in the cart")

        self.repo.commit()
        logger.info(f"Product {product_id} removed from cart of customer {customer_id}")
        return self.get_cart(customer_id)

    def clear(self, customer_id: int) -> int:
        removed = self.repo.delete_all(customer_id)
        self.repo.commit()
        logger.info(f"Cart of customer {customer_id} cleared ({removed} lines)")
        return removed

    def clear_lines(self, customer_id: int, line_ids: list[int]) -> int:
        removed = self.repo.delete_lines(customer_id, list(line_ids))
        self.repo.commit()
        logger.info(f"Removed {removed} ordered lines from cart of customer {customer_id}")
        return removed

    def _available(self, product_id: int, pdata: Dict[str, Any]) -> int:
        stock = self.inventory.stock_by_product([product_id])
        if product_id in stock:
            return stock[product_id]
        #not stocked locally yet, fall back to the catalogue's advisory figure
        return int(pdata.get("stock", 0))
