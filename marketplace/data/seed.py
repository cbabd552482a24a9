# marketplace/data/seed.py
from marketplace.data.database import Base, SessionLocal, engine
from marketplace.product_service.main import PRODUCTS
from marketplace.repos.inventory_repo import InventoryRepo
from marketplace.utils.logging import get_logger

import marketplace.data.models  # noqa: F401

logger = get_logger(__name__)


def seed():
    """Stock rows for every catalogue product that has a seller."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        repo = InventoryRepo(db)
        for product in PRODUCTS.values():
            if product["seller_id"] is None:
                continue
            repo.set_stock(product["id"], product["seller_id"], product["stock"])
        db.commit()
        logger.info("Inventory seeded from the catalogue")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
