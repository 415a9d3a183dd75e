"""In-memory product catalog."""

from collections.abc import Iterable

from stockledger.config import get_logger
from stockledger.core.interfaces import IProductCatalog, ProductInfo

logger = get_logger(__name__)


class StaticProductCatalog(IProductCatalog):
    """Product catalog backed by a fixed set of entries.

    Stands in for the external catalog service in tests and local runs.
    """

    def __init__(self, products: Iterable[ProductInfo] = ()):
        self._products: dict[str, ProductInfo] = {p.product_id: p for p in products}

    def register(self, product: ProductInfo) -> None:
        """Add or replace a catalog entry."""
        self._products[product.product_id] = product

    async def get_product(self, product_id: str) -> ProductInfo | None:
        product = self._products.get(product_id)
        if product is None:
            logger.debug("catalog_product_missing", product_id=product_id)
        return product

    def __len__(self) -> int:
        return len(self._products)
