"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from stockledger.application import InventoryService
from stockledger.application.dto import CreateInventoryItemRequest, StockLevelInput
from stockledger.config import Settings
from stockledger.config.settings import StorageSettings
from stockledger.core.entities import Actor
from stockledger.core.interfaces import ProductInfo
from stockledger.core.services import AlertEvaluator, ForecastEngine, StockMutator
from stockledger.infrastructure.catalog import StaticProductCatalog
from stockledger.infrastructure.storage.memory import (
    InMemoryAlertStore,
    InMemoryForecastStore,
    InMemoryInventoryStore,
)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="user-1", user_email="clerk@example.com")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(storage=StorageSettings(backend="memory", data_dir=tmp_path))


@pytest.fixture
def inventory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


@pytest.fixture
def alert_store() -> InMemoryAlertStore:
    return InMemoryAlertStore()


@pytest.fixture
def forecast_store() -> InMemoryForecastStore:
    return InMemoryForecastStore()


@pytest.fixture
def catalog() -> StaticProductCatalog:
    return StaticProductCatalog(
        [
            ProductInfo(product_id="prod-1", name="Classic Tee", product_type="tshirt"),
            ProductInfo(product_id="prod-2", name="Zip Hoodie", product_type="hoodie"),
        ]
    )


@pytest.fixture
def service(
    inventory_store, alert_store, forecast_store, catalog, settings, clock
) -> InventoryService:
    """Facade over in-memory stores sharing one frozen clock."""
    return InventoryService(
        inventory_store=inventory_store,
        alert_store=alert_store,
        forecast_store=forecast_store,
        alert_evaluator=AlertEvaluator(alert_store, clock=clock),
        forecast_engine=ForecastEngine(inventory_store, forecast_store, clock=clock),
        stock_mutator=StockMutator(inventory_store, clock=clock),
        catalog=catalog,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def tee_request() -> CreateInventoryItemRequest:
    """One size M at 5 units: below min (10) and reorder point (15)."""
    return CreateInventoryItemRequest(
        product_id="prod-1",
        product_name="Classic Tee",
        product_type="tshirt",
        supplier="Acme Textiles",
        location="Warehouse A",
        stock_levels=[
            StockLevelInput(
                size="M",
                current_stock=5,
                min_stock=10,
                max_stock=100,
                reorder_point=15,
                cost=4.0,
            )
        ],
    )


@pytest.fixture
def hoodie_request() -> CreateInventoryItemRequest:
    """Two healthy sizes, name and type resolved from the catalog."""
    return CreateInventoryItemRequest(
        product_id="prod-2",
        supplier="Northwind",
        location="Warehouse B",
        stock_levels=[
            StockLevelInput(
                size="S", current_stock=40, min_stock=5, max_stock=60, reorder_point=10, cost=12.5
            ),
            StockLevelInput(
                size="L", current_stock=30, min_stock=5, max_stock=60, reorder_point=10, cost=12.5
            ),
        ],
    )
