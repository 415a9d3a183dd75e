"""Product catalog adapters."""

from stockledger.infrastructure.catalog.static_catalog import StaticProductCatalog

__all__ = ["StaticProductCatalog"]
