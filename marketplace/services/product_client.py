# marketplace/services/product_client.py
import requests

from marketplace.domain.errors import NotFound
from marketplace.utils.retry import http_retry
from marketplace.utils.settings import PRODUCT_SERVICE_URL
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Read-only client of the external catalogue (price, seller, advisory stock)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            raise NotFound(f"Product {product_id} does not exist")
        resp.raise_for_status()
        return resp.json()
