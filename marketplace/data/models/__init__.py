#import all models so SQLAlchemy registers them in Base.metadata

from marketplace.data.models.inventory import InventoryModel
from marketplace.data.models.cart_line import CartLineModel
from marketplace.data.models.order import OrderModel
from marketplace.data.models.order_item import OrderItemModel

__all__ = ["InventoryModel", "CartLineModel", "OrderModel", "OrderItemModel"]
