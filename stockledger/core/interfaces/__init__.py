"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.product_catalog import IProductCatalog, ProductInfo
from stockledger.core.interfaces.storage import (
    IAlertStore,
    IForecastStore,
    IInventoryStore,
)

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "IAlertStore",
    "IForecastStore",
    # Catalog
    "IProductCatalog",
    "ProductInfo",
]
