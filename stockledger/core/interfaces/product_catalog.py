"""Abstract interface for the external product catalog."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductInfo:
    """Catalog metadata the engine needs at item creation."""

    product_id: str
    name: str
    product_type: str


class IProductCatalog(ABC):
    """Read-only lookup of product metadata owned by another system."""

    @abstractmethod
    async def get_product(self, product_id: str) -> ProductInfo | None:
        """Return product metadata, or None if the catalog does not know it."""
        pass
