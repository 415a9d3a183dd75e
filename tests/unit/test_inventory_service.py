"""Tests for the InventoryService facade over in-memory stores."""

import asyncio
from collections import defaultdict
from unittest.mock import AsyncMock

import pytest

from stockledger.application import InventoryService, generate_sku
from stockledger.application.dto import (
    CreateInventoryItemRequest,
    StockAdjustmentInput,
    StockLevelInput,
    UpdateInventoryItemRequest,
)
from stockledger.core.entities import (
    AlertSeverity,
    AlertType,
    InventoryFilters,
    ItemStatus,
    MovementReason,
    MovementType,
    SalesTrend,
    StockAdjustment,
)
from stockledger.core.exceptions import (
    AlertNotFoundError,
    DuplicateInventoryItemError,
    InsufficientStockError,
    InventoryItemNotFoundError,
    OperationTimeoutError,
    PersistenceError,
    ProductNotFoundError,
    StockRemainingError,
    ValidationError,
)
from stockledger.core.services import AlertEvaluator, ForecastEngine, ItemLockManager, StockMutator
from stockledger.infrastructure.storage.memory import (
    InMemoryAlertStore,
    InMemoryInventoryStore,
)


class SlowInventoryStore(InMemoryInventoryStore):
    """Store whose product lookups hang."""

    async def get_item_by_product(self, product_id):
        await asyncio.sleep(5)
        return await super().get_item_by_product(product_id)


class FlakyAlertStore(InMemoryAlertStore):
    """Alert store that fails while ``failing`` is set."""

    def __init__(self):
        super().__init__()
        self.failing = True

    async def find_unread(self, product_id, size, alert_type):
        if self.failing:
            raise RuntimeError("alert store unavailable")
        return await super().find_unread(product_id, size, alert_type)

    async def add_alert(self, alert):
        if self.failing:
            raise RuntimeError("alert store unavailable")
        return await super().add_alert(alert)


class StallingCommitStore(InMemoryInventoryStore):
    """Store that commits stock changes, then stalls before acknowledging."""

    def __init__(self, stall: float = 0.2):
        super().__init__()
        self.stall = stall

    async def commit_stock_change(self, item, movements):
        committed = await super().commit_stock_change(item, movements)
        await asyncio.sleep(self.stall)
        return committed


def make_service(inventory_store, alert_store, forecast_store, catalog, settings, clock, locks=None):
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
        locks=locks,
    )


def level_totals(movements) -> dict[tuple[str, str], int]:
    totals: dict[tuple[str, str], int] = defaultdict(int)
    for movement in movements:
        totals[(movement.product_id, movement.size)] += movement.signed_quantity
    return dict(totals)


class TestGenerateSku:
    def test_format(self, clock):
        assert generate_sku("tshirt", "Classic Tee", clock.now) == "TSH-CLA-0000"

    def test_strips_punctuation(self, clock):
        assert generate_sku("t-shirt", "A.B Tee", clock.now) == "TSH-ABT-0000"

    def test_fallback_codes(self, clock):
        assert generate_sku("", "!!", clock.now) == "GEN-ITM-0000"

    def test_digits_follow_clock(self, clock):
        assert generate_sku("tshirt", "Tee", clock.advance(seconds=7)).endswith("-7000")


class TestCreateItem:
    async def test_creates_item_with_opening_movement(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)

        assert item.sku == "TSH-CLA-0000"
        assert item.total_stock == 5
        assert item.status == ItemStatus.LOW_STOCK

        [movement] = await service.list_movements("prod-1")
        assert movement.movement_type == MovementType.IN
        assert movement.reason == MovementReason.ADJUSTMENT
        assert movement.quantity == 5
        assert movement.actor == actor

    async def test_scenario_a_single_low_stock_alert(self, service, tee_request, actor):
        await service.create_item(tee_request, actor)

        [alert] = await service.list_alerts()
        assert alert.alert_type == AlertType.LOW_STOCK
        assert alert.severity == AlertSeverity.MEDIUM
        assert alert.threshold == 10

    async def test_name_and_type_from_catalog(self, service, hoodie_request, actor):
        item = await service.create_item(hoodie_request, actor)
        assert item.product_name == "Zip Hoodie"
        assert item.product_type == "hoodie"
        assert item.sku == "HOO-ZIP-0000"

    async def test_unknown_product_without_name(self, service, actor):
        request = CreateInventoryItemRequest(
            product_id="prod-404",
            supplier="Acme",
            location="A",
            stock_levels=[StockLevelInput(size="M", max_stock=10)],
        )
        with pytest.raises(ProductNotFoundError):
            await service.create_item(request, actor)

    async def test_duplicate_product(self, service, tee_request, actor):
        first = await service.create_item(tee_request, actor)
        with pytest.raises(DuplicateInventoryItemError) as exc:
            await service.create_item(tee_request, actor)
        assert exc.value.details["existing_id"] == first.id

    async def test_requires_actor(self, service, tee_request):
        with pytest.raises(ValidationError) as exc:
            await service.create_item(tee_request, None)
        assert exc.value.field == "actor"

    @pytest.mark.parametrize(
        ("changes", "field"),
        [
            ({"supplier": "  "}, "supplier"),
            ({"location": ""}, "location"),
            ({"stock_levels": []}, "stock_levels"),
            (
                {"stock_levels": [StockLevelInput(size="M"), StockLevelInput(size="M")]},
                "stock_levels[1].size",
            ),
            ({"stock_levels": [StockLevelInput(size="M", current_stock=-1)]}, "stock_levels[0].current_stock"),
            ({"stock_levels": [StockLevelInput(size="M", min_stock=5, max_stock=2)]}, "stock_levels[0].min_stock"),
            ({"stock_levels": [StockLevelInput(size="M", cost=-1.0)]}, "stock_levels[0].cost"),
        ],
    )
    async def test_rejects_bad_input(self, service, tee_request, actor, changes, field):
        request = tee_request.model_copy(update=changes)
        with pytest.raises(ValidationError) as exc:
            await service.create_item(request, actor)
        assert exc.value.field == field
        assert await service.list_items() == []


class TestUpdateAndDelete:
    async def test_metadata_update(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)
        updated = await service.update_item(
            item.id, UpdateInventoryItemRequest(location="Warehouse C", notes="moved"), actor
        )
        assert updated.location == "Warehouse C"
        assert updated.notes == "moved"
        assert len(await service.list_movements("prod-1")) == 1

    async def test_stock_edit_writes_adjustment(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)
        request = UpdateInventoryItemRequest(
            stock_levels=[
                StockLevelInput(size="M", current_stock=12, min_stock=10, max_stock=100, reorder_point=15, cost=4.0),
                StockLevelInput(size="L", current_stock=0, min_stock=0, max_stock=50),
            ]
        )

        updated = await service.update_item(item.id, request, actor)

        assert updated.sizes == ["M", "L"]
        newest = (await service.list_movements("prod-1"))[0]
        assert newest.movement_type == MovementType.IN
        assert newest.quantity == 7
        assert newest.size == "M"

    async def test_cannot_drop_size_with_stock(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)
        request = UpdateInventoryItemRequest(stock_levels=[StockLevelInput(size="L", max_stock=10)])
        with pytest.raises(StockRemainingError):
            await service.update_item(item.id, request, actor)
        assert (await service.get_item(item.id)).sizes == ["M"]

    async def test_update_missing_item(self, service, actor):
        with pytest.raises(InventoryItemNotFoundError):
            await service.update_item("missing", UpdateInventoryItemRequest(notes="x"), actor)

    async def test_delete_requires_empty_stock(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)
        with pytest.raises(StockRemainingError):
            await service.delete_item(item.id)

        await service.record_waste("prod-1", "M", 5, actor)
        await service.delete_item(item.id)

        with pytest.raises(InventoryItemNotFoundError):
            await service.get_item(item.id)
        assert len(await service.list_movements("prod-1")) == 2

    async def test_delete_missing_item(self, service):
        with pytest.raises(InventoryItemNotFoundError):
            await service.delete_item("missing")


class TestStockOperations:
    async def test_scenario_b_adjustment_clamps(self, service, tee_request, actor):
        item = await service.create_item(tee_request, actor)

        change = await service.adjust_stock(
            item.id, [StockAdjustmentInput(size="M", delta_quantity=-8)], actor
        )

        assert change.item.get_level("M").current_stock == 0
        [movement] = change.movements
        assert movement.movement_type == MovementType.OUT
        assert movement.quantity == 5
        alert_types = {a.alert_type for a in await service.list_alerts()}
        assert AlertType.OUT_OF_STOCK in alert_types

    async def test_scenario_c_oversell_rejected(self, service, tee_request, actor):
        await service.create_item(tee_request, actor)

        with pytest.raises(InsufficientStockError) as exc:
            await service.record_sale("prod-1", "M", 20, actor, reference="order-9")

        assert exc.value.available == 5
        assert exc.value.requested == 20
        assert (await service.get_item_by_product("prod-1")).total_stock == 5
        assert len(await service.list_movements("prod-1")) == 1

    async def test_purchase_updates_cost_and_restock_time(self, service, tee_request, actor, clock):
        await service.create_item(tee_request, actor)
        clock.advance(days=1)

        change = await service.record_purchase("prod-1", "M", 50, actor, unit_cost=3.5, reference="po-1")

        level = change.item.get_level("M")
        assert level.current_stock == 55
        assert level.cost == 3.5
        assert level.last_restocked == clock.now
        assert change.movements[0].reference == "po-1"

    async def test_return_and_waste(self, service, hoodie_request, actor):
        await service.create_item(hoodie_request, actor)
        await service.record_return("prod-2", "S", 2, actor)
        change = await service.record_waste("prod-2", "S", 7, actor, notes="damaged")
        assert change.item.get_level("S").current_stock == 35
        assert change.movements[0].reason == MovementReason.WASTE

    async def test_reason_direction_enforced(self, service, hoodie_request, actor):
        await service.create_item(hoodie_request, actor)
        with pytest.raises(ValidationError):
            await service.process_movement("prod-2", "S", 1, "in", "sale", actor)

    async def test_unknown_product(self, service, actor):
        with pytest.raises(ProductNotFoundError):
            await service.record_sale("nope", "M", 1, actor)

    async def test_ledger_conserves_stock(self, service, tee_request, hoodie_request, actor):
        tee = await service.create_item(tee_request, actor)
        await service.create_item(hoodie_request, actor)
        await service.record_purchase("prod-1", "M", 20, actor)
        await service.record_sale("prod-1", "M", 12, actor)
        await service.adjust_stock(tee.id, [StockAdjustment(size="M", delta_quantity=-100)], actor)
        await service.record_sale("prod-2", "L", 30, actor)
        await service.record_return("prod-2", "L", 4, actor)
        await service.record_waste("prod-2", "S", 1, actor)

        totals = level_totals(await service.list_movements(limit=200))
        for item in await service.list_items():
            for level in item.stock_levels:
                assert totals.get((item.product_id, level.size), 0) == level.current_stock

    async def test_concurrent_sales_never_oversell(self, service, hoodie_request, actor):
        await service.create_item(hoodie_request, actor)

        results = await asyncio.gather(
            *(service.record_sale("prod-2", "S", 5, actor) for _ in range(10)),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 2
        assert all(isinstance(f, InsufficientStockError) for f in failures)
        item = await service.get_item_by_product("prod-2")
        assert item.get_level("S").current_stock == 0
        sales = [m for m in await service.list_movements("prod-2") if m.reason == MovementReason.SALE]
        assert len(sales) == 8


class TestDeadlinesAndAlertRetry:
    async def test_timeout(self, alert_store, forecast_store, catalog, settings, clock, actor):
        service = make_service(SlowInventoryStore(), alert_store, forecast_store, catalog, settings, clock)

        with pytest.raises(OperationTimeoutError) as exc:
            await service.record_sale("prod-1", "M", 1, actor, timeout=0.01)

        assert exc.value.details == {"operation": "process_movement", "timeout": 0.01}

    async def test_alert_failure_is_retried(
        self, inventory_store, forecast_store, catalog, settings, clock, tee_request, actor
    ):
        alert_store = FlakyAlertStore()
        service = make_service(inventory_store, alert_store, forecast_store, catalog, settings, clock)

        item = await service.create_item(tee_request, actor)

        assert item.total_stock == 5
        assert service.pending_alert_items == {item.id}

        alert_store.failing = False
        [alert] = await service.list_alerts()
        assert alert.alert_type == AlertType.LOW_STOCK
        assert service.pending_alert_items == set()

    async def test_pending_retry_also_runs_on_stats(
        self, inventory_store, forecast_store, catalog, settings, clock, tee_request, actor
    ):
        alert_store = FlakyAlertStore()
        service = make_service(inventory_store, alert_store, forecast_store, catalog, settings, clock)
        await service.create_item(tee_request, actor)

        alert_store.failing = False
        stats = await service.get_stats()

        assert stats.alerts_count == 1

    async def test_write_landing_after_deadline_is_not_a_timeout(
        self, alert_store, forecast_store, catalog, settings, clock, tee_request, actor
    ):
        service = make_service(StallingCommitStore(), alert_store, forecast_store, catalog, settings, clock)
        await service.create_item(tee_request, actor)

        change = await service.record_sale("prod-1", "M", 5, actor, timeout=0.05)

        assert change.item.get_level("M").current_stock == 0
        assert service.pending_alert_items == set()
        alert_types = {alert.alert_type for alert in await service.list_alerts()}
        assert alert_types == {AlertType.LOW_STOCK, AlertType.OUT_OF_STOCK}

    async def test_cancelled_caller_leaves_alerts_queued(
        self, alert_store, forecast_store, catalog, settings, clock, tee_request, actor
    ):
        inventory_store = StallingCommitStore(stall=0.1)
        service = make_service(inventory_store, alert_store, forecast_store, catalog, settings, clock)
        item = await service.create_item(tee_request, actor)

        sale = asyncio.create_task(service.record_sale("prod-1", "M", 5, actor))
        await asyncio.sleep(0.02)
        sale.cancel()
        with pytest.raises(asyncio.CancelledError):
            await sale

        assert service.pending_alert_items == {item.id}
        await asyncio.sleep(0.15)
        assert (await inventory_store.get_item(item.id)).total_stock == 0
        alert_types = {alert.alert_type for alert in await service.list_alerts()}
        assert AlertType.OUT_OF_STOCK in alert_types
        assert service.pending_alert_items == set()

    async def test_persistence_error_reaches_caller(
        self, service, inventory_store, tee_request, actor, monkeypatch
    ):
        item = await service.create_item(tee_request, actor)
        error = PersistenceError("commit_stock_change", "disk I/O error")
        monkeypatch.setattr(inventory_store, "commit_stock_change", AsyncMock(side_effect=error))
        evaluate = AsyncMock()
        monkeypatch.setattr(AlertEvaluator, "evaluate_and_record", evaluate)

        with pytest.raises(PersistenceError) as exc:
            await service.record_sale("prod-1", "M", 2, actor)
        assert exc.value is error

        with pytest.raises(PersistenceError) as exc:
            await service.adjust_stock(item.id, [StockAdjustment(size="M", delta_quantity=3)], actor)
        assert exc.value is error

        evaluate.assert_not_awaited()
        assert service.pending_alert_items == set()
        assert (await service.get_item(item.id)).total_stock == 5

    async def test_movement_follows_item_replaced_while_waiting(
        self, inventory_store, alert_store, forecast_store, catalog, settings, clock, tee_request, actor
    ):
        locks = ItemLockManager()
        service = make_service(inventory_store, alert_store, forecast_store, catalog, settings, clock, locks)
        first = await service.create_item(tee_request, actor)

        release_second = asyncio.Event()

        async def hold(item_id):
            async with locks.hold(item_id):
                await release_second.wait()

        async with locks.hold(first.id):
            purchase = asyncio.create_task(service.record_purchase("prod-1", "M", 3, actor))
            await asyncio.sleep(0.01)
            await inventory_store.delete_item(first.id)
            second = await service.create_item(tee_request, actor)
            holder = asyncio.create_task(hold(second.id))
            await asyncio.sleep(0.01)

        await asyncio.sleep(0.01)
        assert not purchase.done()

        release_second.set()
        change = await purchase
        await holder

        assert change.item.id == second.id
        assert change.item.get_level("M").current_stock == 8
        assert locks.active_keys == []


class TestQueries:
    async def test_stats(self, service, tee_request, hoodie_request, actor):
        await service.create_item(tee_request, actor)
        await service.create_item(hoodie_request, actor)

        stats = await service.get_stats()

        assert stats.total_items == 2
        assert stats.total_value == pytest.approx(5 * 4.0 + 70 * 12.5)
        assert stats.low_stock_count == 1
        assert stats.out_of_stock_count == 0
        assert stats.alerts_count == 1
        assert stats.average_stock_level == pytest.approx(37.5)

    async def test_stats_empty(self, service):
        stats = await service.get_stats()
        assert stats.total_items == 0
        assert stats.average_stock_level == 0.0

    async def test_list_items_filters(self, service, tee_request, hoodie_request, actor):
        await service.create_item(tee_request, actor)
        await service.create_item(hoodie_request, actor)

        low = await service.list_items(InventoryFilters(status=ItemStatus.LOW_STOCK))
        assert [i.product_id for i in low] == ["prod-1"]

        found = await service.list_items(InventoryFilters(search="zip"))
        assert [i.product_id for i in found] == ["prod-2"]

        assert await service.list_items(InventoryFilters(location="Nowhere")) == []

    async def test_mark_alert_read(self, service, tee_request, actor):
        await service.create_item(tee_request, actor)
        [alert] = await service.list_alerts()

        await service.mark_alert_read(alert.id)

        assert await service.list_alerts(unread_only=True) == []
        with pytest.raises(AlertNotFoundError):
            await service.mark_alert_read("missing")

    async def test_list_movements_limits(self, service, inventory_store, monkeypatch):
        mock = AsyncMock(return_value=[])
        monkeypatch.setattr(inventory_store, "list_movements", mock)

        await service.list_movements()
        await service.list_movements("prod-1", limit=500)

        assert mock.await_args_list[0].kwargs == {"limit": 50}
        assert mock.await_args_list[1].args == ("prod-1",)
        assert mock.await_args_list[1].kwargs == {"limit": 200}

        with pytest.raises(ValidationError):
            await service.list_movements(limit=0)

    async def test_movements_newest_first(self, service, hoodie_request, actor, clock):
        await service.create_item(hoodie_request, actor)
        clock.advance(minutes=1)
        await service.record_sale("prod-2", "S", 1, actor, reference="first")
        clock.advance(minutes=1)
        await service.record_sale("prod-2", "S", 1, actor, reference="second")

        movements = await service.list_movements("prod-2", limit=2)
        assert [m.reference for m in movements] == ["second", "first"]


class TestForecasting:
    async def test_forecast_is_idempotent(self, service, hoodie_request, actor, clock):
        await service.create_item(hoodie_request, actor)
        await service.record_sale("prod-2", "S", 14, actor)

        first = await service.generate_forecast("prod-2", "weekly")
        clock.advance(minutes=10)
        second = await service.generate_forecast("prod-2", "weekly")

        assert second.id == first.id
        assert [f.id for f in await service.list_forecasts("prod-2")] == [first.id]
        assert first.daily_velocity == pytest.approx(2.0)

    async def test_forecast_defaults_to_monthly(self, service, hoodie_request, actor):
        await service.create_item(hoodie_request, actor)
        forecast = await service.generate_forecast("prod-2")
        assert forecast.period.value == "monthly"

    async def test_sales_velocity(self, service, hoodie_request, actor):
        await service.create_item(hoodie_request, actor)
        await service.record_sale("prod-2", "L", 7, actor)

        velocity = await service.get_sales_velocity("prod-2", "weekly")

        assert velocity.current == pytest.approx(1.0)
        assert velocity.trend == SalesTrend.INCREASING

    async def test_forecast_for_unknown_product(self, service):
        with pytest.raises(ProductNotFoundError):
            await service.generate_forecast("ghost")
