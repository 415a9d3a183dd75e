"""Application layer: DTOs, the inventory facade and its wiring."""

from stockledger.application.inventory_service import InventoryService, generate_sku
from stockledger.application.services import build_inventory_service, build_stores

__all__ = [
    "InventoryService",
    "build_inventory_service",
    "build_stores",
    "generate_sku",
]
