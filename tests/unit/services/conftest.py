"""Fixtures for core service tests."""

import pytest

from stockledger.core.entities import InventoryItem, StockLevel
from stockledger.core.services import StockMutator


@pytest.fixture
def mutator(inventory_store, clock) -> StockMutator:
    return StockMutator(inventory_store, clock=clock)


@pytest.fixture
def tee_item() -> InventoryItem:
    return InventoryItem(
        product_id="prod-1",
        product_name="Classic Tee",
        product_type="tshirt",
        sku="TSH-CLA-0001",
        supplier="Acme Textiles",
        location="Warehouse A",
        stock_levels=[
            StockLevel(size="M", current_stock=5, min_stock=10, max_stock=100, reorder_point=15, cost=4.0),
            StockLevel(size="L", current_stock=50, min_stock=10, max_stock=100, reorder_point=15, cost=4.0),
        ],
    )


@pytest.fixture
async def stored_tee(mutator, tee_item, actor) -> InventoryItem:
    change = await mutator.create_item(tee_item, actor)
    return change.item
