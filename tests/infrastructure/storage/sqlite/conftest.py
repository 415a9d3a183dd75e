"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from stockledger.core.entities import (
    Actor,
    InventoryItem,
    MovementReason,
    MovementType,
    StockLevel,
    StockMovement,
)
from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteAlertStore,
    SQLiteForecastStore,
    SQLiteInventoryStore,
    run_migrations,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
ACTOR = Actor(user_id="user-1", user_email="clerk@example.com")


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def pool(temp_db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Migrated database behind a small connection pool."""
    await run_migrations(temp_db_path)
    pool = ConnectionPool(temp_db_path, pool_size=2)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def ledger_store(pool: ConnectionPool) -> SQLiteInventoryStore:
    return SQLiteInventoryStore(pool)


@pytest.fixture
def sqlite_alert_store(pool: ConnectionPool) -> SQLiteAlertStore:
    return SQLiteAlertStore(pool)


@pytest.fixture
def sqlite_forecast_store(pool: ConnectionPool) -> SQLiteForecastStore:
    return SQLiteForecastStore(pool)


def _build_item(product_id: str = "prod-1", **overrides) -> InventoryItem:
    data = {
        "product_id": product_id,
        "product_name": "Classic Tee",
        "product_type": "tshirt",
        "sku": "TSH-CLA-0000",
        "supplier": "Acme",
        "location": "Warehouse A",
        "stock_levels": [
            StockLevel(size="M", current_stock=5, min_stock=10, max_stock=100, reorder_point=15, cost=4.0),
            StockLevel(size="L", current_stock=20, max_stock=50, cost=4.5, last_restocked=NOW),
        ],
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return InventoryItem(**data)


def _build_movement(
    product_id: str = "prod-1",
    size: str = "M",
    quantity: int = 5,
    movement_type: MovementType = MovementType.IN,
    reason: MovementReason = MovementReason.ADJUSTMENT,
    **overrides,
) -> StockMovement:
    data = {
        "product_id": product_id,
        "product_name": "Classic Tee",
        "product_type": "tshirt",
        "size": size,
        "movement_type": movement_type,
        "reason": reason,
        "quantity": quantity,
        "actor": ACTOR,
        "location": "Warehouse A",
        "created_at": NOW,
    }
    data.update(overrides)
    return StockMovement(**data)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_item():
    """Factory for an item with sizes M (5 units) and L (20 units)."""
    return _build_item


@pytest.fixture
def make_movement():
    """Factory for a movement against prod-1, size M by default."""
    return _build_movement
