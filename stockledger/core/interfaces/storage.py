"""
Abstract storage interfaces.

Define contracts for ledger, alert and forecast persistence. Implementations
hold no business rules; they only guarantee the atomicity documented on each
method.
"""

from abc import ABC, abstractmethod

from stockledger.core.entities import (
    AlertType,
    ForecastPeriod,
    InventoryItem,
    StockAlert,
    StockForecast,
    StockMovement,
)


class IInventoryStore(ABC):
    """Interface for inventory items and the append-only movement ledger."""

    @abstractmethod
    async def create_item(
        self, item: InventoryItem, movements: list[StockMovement] | None = None
    ) -> InventoryItem:
        """
        Insert a new item together with its opening movements.

        The item and movements are written atomically. Raises
        DuplicateInventoryItemError if the product already has an item.
        """
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get inventory item by ID."""
        pass

    @abstractmethod
    async def get_item_by_product(self, product_id: str) -> InventoryItem | None:
        """Get inventory item by product ID."""
        pass

    @abstractmethod
    async def list_items(self) -> list[InventoryItem]:
        """List all inventory items, most recently updated first."""
        pass

    @abstractmethod
    async def commit_stock_change(
        self, item: InventoryItem, movements: list[StockMovement]
    ) -> InventoryItem:
        """
        Persist an updated item and append its movements as one unit.

        Either the item and every movement are stored, or nothing is.
        """
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> bool:
        """Delete an item. Movements are kept. Returns False if absent."""
        pass

    @abstractmethod
    async def list_movements(
        self, product_id: str | None = None, limit: int = 50
    ) -> list[StockMovement]:
        """Get movements, newest first, optionally for one product."""
        pass


class IAlertStore(ABC):
    """Interface for stock alert persistence."""

    @abstractmethod
    async def add_alert(self, alert: StockAlert) -> StockAlert:
        """Store a new alert."""
        pass

    @abstractmethod
    async def get_alert(self, alert_id: str) -> StockAlert | None:
        """Get alert by ID."""
        pass

    @abstractmethod
    async def find_unread(
        self, product_id: str, size: str, alert_type: AlertType
    ) -> StockAlert | None:
        """Find the newest unread alert for (product, size, type)."""
        pass

    @abstractmethod
    async def update_alert(self, alert: StockAlert) -> StockAlert:
        """Overwrite an existing alert."""
        pass

    @abstractmethod
    async def list_alerts(self, unread_only: bool = False) -> list[StockAlert]:
        """List alerts, newest first."""
        pass

    @abstractmethod
    async def mark_read(self, alert_id: str) -> bool:
        """Mark alert as read. Returns False if absent."""
        pass

    @abstractmethod
    async def count_unread(self) -> int:
        """Count unread alerts."""
        pass


class IForecastStore(ABC):
    """Interface for forecast persistence (one live forecast per product+period)."""

    @abstractmethod
    async def upsert_forecast(self, forecast: StockForecast) -> StockForecast:
        """
        Insert or replace the forecast for (product, period).

        When one exists its id and created_at are kept.
        """
        pass

    @abstractmethod
    async def get_forecast(
        self, product_id: str, period: ForecastPeriod
    ) -> StockForecast | None:
        """Get the live forecast for (product, period)."""
        pass

    @abstractmethod
    async def list_forecasts(self, product_id: str | None = None) -> list[StockForecast]:
        """List forecasts, most recently updated first."""
        pass
