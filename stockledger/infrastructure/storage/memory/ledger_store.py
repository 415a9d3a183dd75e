"""
In-memory implementations of the ledger, alert and forecast stores.

Reference backend for tests and single-process use. Objects are copied on
the way in and out, so callers never share state with the store. Writes do
not await between their steps, which makes each call atomic on the event
loop.
"""

from stockledger.config import get_logger
from stockledger.core.entities import (
    AlertType,
    ForecastPeriod,
    InventoryItem,
    StockAlert,
    StockForecast,
    StockMovement,
)
from stockledger.core.exceptions import (
    DuplicateInventoryItemError,
    InventoryItemNotFoundError,
)
from stockledger.core.interfaces import IAlertStore, IForecastStore, IInventoryStore

logger = get_logger(__name__)


class InMemoryInventoryStore(IInventoryStore):
    """Dict-backed inventory items plus an append-only movement list."""

    def __init__(self) -> None:
        self._items: dict[str, InventoryItem] = {}
        self._by_product: dict[str, str] = {}
        self._movements: list[StockMovement] = []

    async def create_item(
        self, item: InventoryItem, movements: list[StockMovement] | None = None
    ) -> InventoryItem:
        existing_id = self._by_product.get(item.product_id)
        if existing_id is not None:
            raise DuplicateInventoryItemError(item.product_id, existing_id)

        stored = item.model_copy(deep=True)
        self._items[stored.id] = stored
        self._by_product[stored.product_id] = stored.id
        self._movements.extend(movements or [])
        logger.debug("inventory_item_stored", item_id=stored.id, product_id=stored.product_id)
        return stored.model_copy(deep=True)

    async def get_item(self, item_id: str) -> InventoryItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def get_item_by_product(self, product_id: str) -> InventoryItem | None:
        item_id = self._by_product.get(product_id)
        if item_id is None:
            return None
        return await self.get_item(item_id)

    async def list_items(self) -> list[InventoryItem]:
        items = sorted(self._items.values(), key=lambda i: i.updated_at, reverse=True)
        return [item.model_copy(deep=True) for item in items]

    async def commit_stock_change(
        self, item: InventoryItem, movements: list[StockMovement]
    ) -> InventoryItem:
        if item.id not in self._items:
            raise InventoryItemNotFoundError(item.id)

        stored = item.model_copy(deep=True)
        self._items[stored.id] = stored
        self._movements.extend(movements)
        return stored.model_copy(deep=True)

    async def delete_item(self, item_id: str) -> bool:
        item = self._items.pop(item_id, None)
        if item is None:
            return False
        self._by_product.pop(item.product_id, None)
        return True

    async def list_movements(
        self, product_id: str | None = None, limit: int = 50
    ) -> list[StockMovement]:
        # Newest first; ties keep reverse insertion order
        selected = [
            m for m in reversed(self._movements)
            if product_id is None or m.product_id == product_id
        ]
        selected.sort(key=lambda m: m.created_at, reverse=True)
        return selected[:limit]


class InMemoryAlertStore(IAlertStore):
    """Dict-backed alert storage."""

    def __init__(self) -> None:
        self._alerts: dict[str, StockAlert] = {}

    async def add_alert(self, alert: StockAlert) -> StockAlert:
        self._alerts[alert.id] = alert.model_copy()
        return alert.model_copy()

    async def get_alert(self, alert_id: str) -> StockAlert | None:
        alert = self._alerts.get(alert_id)
        return alert.model_copy() if alert else None

    async def find_unread(
        self, product_id: str, size: str, alert_type: AlertType
    ) -> StockAlert | None:
        matches = [
            a for a in self._alerts.values()
            if not a.is_read and a.dedupe_key == (product_id, size, alert_type)
        ]
        if not matches:
            return None
        return max(matches, key=lambda a: a.created_at).model_copy()

    async def update_alert(self, alert: StockAlert) -> StockAlert:
        self._alerts[alert.id] = alert.model_copy()
        return alert.model_copy()

    async def list_alerts(self, unread_only: bool = False) -> list[StockAlert]:
        alerts = [a for a in self._alerts.values() if not (unread_only and a.is_read)]
        alerts.sort(key=lambda a: a.created_at, reverse=True)
        return [a.model_copy() for a in alerts]

    async def mark_read(self, alert_id: str) -> bool:
        alert = self._alerts.get(alert_id)
        if alert is None:
            return False
        self._alerts[alert_id] = alert.model_copy(update={"is_read": True})
        return True

    async def count_unread(self) -> int:
        return sum(1 for a in self._alerts.values() if not a.is_read)


class InMemoryForecastStore(IForecastStore):
    """Forecasts keyed by (product_id, period)."""

    def __init__(self) -> None:
        self._forecasts: dict[tuple[str, ForecastPeriod], StockForecast] = {}

    async def upsert_forecast(self, forecast: StockForecast) -> StockForecast:
        key = (forecast.product_id, forecast.period)
        existing = self._forecasts.get(key)
        if existing is not None:
            forecast = forecast.model_copy(
                update={"id": existing.id, "created_at": existing.created_at}
            )
        self._forecasts[key] = forecast.model_copy(deep=True)
        return forecast.model_copy(deep=True)

    async def get_forecast(
        self, product_id: str, period: ForecastPeriod
    ) -> StockForecast | None:
        forecast = self._forecasts.get((product_id, ForecastPeriod(period)))
        return forecast.model_copy(deep=True) if forecast else None

    async def list_forecasts(self, product_id: str | None = None) -> list[StockForecast]:
        forecasts = [
            f for f in self._forecasts.values()
            if product_id is None or f.product_id == product_id
        ]
        forecasts.sort(key=lambda f: f.updated_at, reverse=True)
        return [f.model_copy(deep=True) for f in forecasts]
