"""Core domain entities."""

from stockledger.core.entities.alert import AlertSeverity, AlertType, StockAlert
from stockledger.core.entities.forecast import (
    ForecastFactor,
    ForecastPeriod,
    SalesTrend,
    SalesVelocity,
    StockForecast,
)
from stockledger.core.entities.inventory import (
    Actor,
    InventoryFilters,
    InventoryItem,
    InventoryStats,
    ItemStatus,
    MovementReason,
    MovementType,
    StockAdjustment,
    StockLevel,
    StockMovement,
    new_id,
    utc_now,
)

__all__ = [
    # Inventory entities
    "Actor",
    "InventoryFilters",
    "InventoryItem",
    "InventoryStats",
    "ItemStatus",
    "MovementReason",
    "MovementType",
    "StockAdjustment",
    "StockLevel",
    "StockMovement",
    "new_id",
    "utc_now",
    # Alert entities
    "AlertSeverity",
    "AlertType",
    "StockAlert",
    # Forecast entities
    "ForecastFactor",
    "ForecastPeriod",
    "SalesTrend",
    "SalesVelocity",
    "StockForecast",
]
