"""
Inventory facade.

Public entry point for inventory CRUD, stock operations, alerts, movement
history and forecasts. Mutations are serialized per item, bounded by a
deadline, and followed by a best-effort alert evaluation once the write is
durable.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

from stockledger.application.dto import (
    CreateInventoryItemRequest,
    StockAdjustmentInput,
    StockLevelInput,
    UpdateInventoryItemRequest,
)
from stockledger.config import Settings, get_logger
from stockledger.core.entities import (
    Actor,
    ForecastPeriod,
    InventoryFilters,
    InventoryItem,
    InventoryStats,
    ItemStatus,
    MovementReason,
    MovementType,
    SalesVelocity,
    StockAdjustment,
    StockAlert,
    StockForecast,
    StockLevel,
    StockMovement,
    utc_now,
)
from stockledger.core.exceptions import (
    AlertNotFoundError,
    DuplicateInventoryItemError,
    InventoryItemNotFoundError,
    OperationTimeoutError,
    ProductNotFoundError,
    StockRemainingError,
    ValidationError,
)
from stockledger.core.interfaces import (
    IAlertStore,
    IForecastStore,
    IInventoryStore,
    IProductCatalog,
)
from stockledger.core.services import (
    AlertEvaluator,
    ForecastEngine,
    ItemLockManager,
    StockChange,
    StockMutator,
)

logger = get_logger(__name__)

_SKU_CLEAN = re.compile(r"[^A-Za-z0-9]")


def generate_sku(product_type: str, product_name: str, now: datetime) -> str:
    """SKU as ``{TYPE3}-{NAME3}-{4 digits}``, digits from the clock."""
    type_code = _SKU_CLEAN.sub("", product_type)[:3].upper() or "GEN"
    name_code = _SKU_CLEAN.sub("", product_name)[:3].upper() or "ITM"
    digits = int(now.timestamp() * 1000) % 10000
    return f"{type_code}-{name_code}-{digits:04d}"


def _require_text(field_name: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field_name, "Must not be empty", value)
    return value.strip()


def _require_actor(actor: Actor | None) -> Actor:
    if actor is None:
        raise ValidationError("actor", "An actor is required for stock changes")
    if not actor.user_id.strip():
        raise ValidationError("actor.user_id", "Must not be empty", actor.user_id)
    return actor


def _build_levels(
    inputs: Sequence[StockLevelInput],
    existing: InventoryItem | None = None,
) -> list[StockLevel]:
    """Validate caller-supplied levels and turn them into StockLevel entities."""
    if not inputs:
        raise ValidationError("stock_levels", "At least one stock level is required")

    seen: set[str] = set()
    levels: list[StockLevel] = []
    for index, level in enumerate(inputs):
        prefix = f"stock_levels[{index}]"
        size = _require_text(f"{prefix}.size", level.size)
        if size in seen:
            raise ValidationError(f"{prefix}.size", "Duplicate size", size)
        seen.add(size)

        for name in ("current_stock", "min_stock", "max_stock", "reorder_point"):
            value = getattr(level, name)
            if value < 0:
                raise ValidationError(f"{prefix}.{name}", "Must not be negative", value)
        if level.cost < 0:
            raise ValidationError(f"{prefix}.cost", "Must not be negative", level.cost)
        if level.min_stock > level.max_stock:
            raise ValidationError(
                f"{prefix}.min_stock", "Must not exceed max_stock", level.min_stock
            )

        previous = existing.get_level(size) if existing else None
        levels.append(
            StockLevel(
                size=size,
                current_stock=level.current_stock,
                min_stock=level.min_stock,
                max_stock=level.max_stock,
                reorder_point=level.reorder_point,
                cost=level.cost,
                last_restocked=previous.last_restocked if previous else None,
            )
        )
    return levels


class InventoryService:
    """
    Facade over the ledger, alert and forecast components.

    Collaborators are injected; nothing here reaches for module-level
    singletons. Every public method accepts ``timeout`` to override the
    configured deadline.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore,
        alert_store: IAlertStore,
        forecast_store: IForecastStore,
        alert_evaluator: AlertEvaluator,
        forecast_engine: ForecastEngine,
        *,
        stock_mutator: StockMutator | None = None,
        catalog: IProductCatalog | None = None,
        locks: ItemLockManager | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._inventory_store = inventory_store
        self._alert_store = alert_store
        self._forecast_store = forecast_store
        self._alert_evaluator = alert_evaluator
        self._forecast_engine = forecast_engine
        self._mutator = stock_mutator or StockMutator(inventory_store, clock=clock)
        self._catalog = catalog
        self._locks = locks or ItemLockManager()
        self._clock = clock

        settings = settings or Settings()
        self._default_timeout = settings.inventory.operation_timeout
        self._movement_default = settings.inventory.movement_list_default
        self._movement_max = settings.inventory.movement_list_max

        # Items written since their last successful alert evaluation
        self._pending_alerts: set[str] = set()

    @property
    def pending_alert_items(self) -> set[str]:
        return set(self._pending_alerts)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _deadline(
        self, operation: str, timeout: float | None
    ) -> AsyncIterator[asyncio.Timeout]:
        limit = self._default_timeout if timeout is None else timeout
        try:
            async with asyncio.timeout(limit) as scope:
                yield scope
        except TimeoutError as e:
            logger.warning("operation_timed_out", operation=operation, timeout=limit)
            raise OperationTimeoutError(operation, limit) from e

    async def _write(
        self,
        operation: str,
        deadline: asyncio.Timeout,
        item_id: str,
        write: Awaitable[StockChange],
    ) -> StockChange:
        """
        Run a mutator call to completion and queue the item's alerts.

        The call is shielded from the deadline. If the deadline expires while
        it is in flight, wait for it and report its own outcome: a write that
        landed is returned, one that failed raises its error. The item stays
        queued for alert evaluation unless the write failed.
        """
        was_pending = item_id in self._pending_alerts
        self._pending_alerts.add(item_id)

        task = asyncio.ensure_future(write)
        try:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                if not deadline.expired():
                    raise
                logger.warning("write_outlived_deadline", operation=operation, item_id=item_id)
                return await task
        except Exception:
            if not was_pending:
                self._pending_alerts.discard(item_id)
            raise

    @asynccontextmanager
    async def _hold_product_item(self, product_id: str) -> AsyncIterator[InventoryItem]:
        """Lock the item that currently tracks ``product_id``."""
        while True:
            item = await self._require_product_item(product_id)
            async with self._locks.hold(item.id):
                current = await self._inventory_store.get_item_by_product(product_id)
                if current is not None and current.id == item.id:
                    yield current
                    return
            # Replaced or removed while we waited; look it up again
            logger.info("inventory_item_replaced", product_id=product_id, item_id=item.id)

    async def _evaluate_alerts(self, item_id: str) -> None:
        """Re-read the item and record its alerts. Never raises on failure."""
        try:
            async with self._locks.hold(f"alerts:{item_id}"):
                item = await self._inventory_store.get_item(item_id)
                if item is not None:
                    await self._alert_evaluator.evaluate_and_record(item)
        except Exception as e:
            logger.error("alert_evaluation_failed", item_id=item_id, error=str(e))
            self._pending_alerts.add(item_id)
        else:
            self._pending_alerts.discard(item_id)

    async def _flush_pending_alerts(self) -> None:
        for item_id in sorted(self._pending_alerts):
            logger.info("alert_evaluation_retry", item_id=item_id)
            await self._evaluate_alerts(item_id)

    async def _require_item(self, item_id: str) -> InventoryItem:
        item = await self._inventory_store.get_item(item_id)
        if item is None:
            raise InventoryItemNotFoundError(item_id)
        return item

    async def _require_product_item(self, product_id: str) -> InventoryItem:
        item = await self._inventory_store.get_item_by_product(product_id)
        if item is None:
            raise ProductNotFoundError(product_id)
        return item

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def create_item(
        self,
        request: CreateInventoryItemRequest,
        actor: Actor,
        timeout: float | None = None,
    ) -> InventoryItem:
        """
        Start tracking stock for a product.

        Opening stock is written to the ledger as adjustment movements.

        Raises:
            ValidationError: missing fields or bad stock levels
            ProductNotFoundError: name/type neither supplied nor in the catalog
            DuplicateInventoryItemError: product already has an item
        """
        actor = _require_actor(actor)
        product_id = _require_text("product_id", request.product_id)
        supplier = _require_text("supplier", request.supplier)
        location = _require_text("location", request.location)
        levels = _build_levels(request.stock_levels)

        async with self._deadline("create_item", timeout) as deadline:
            product_name = (request.product_name or "").strip()
            product_type = (request.product_type or "").strip()
            if not (product_name and product_type):
                info = await self._catalog.get_product(product_id) if self._catalog else None
                if info is None:
                    raise ProductNotFoundError(product_id)
                product_name = product_name or info.name
                product_type = product_type or info.product_type

            async with self._locks.hold(f"product:{product_id}"):
                existing = await self._inventory_store.get_item_by_product(product_id)
                if existing is not None:
                    raise DuplicateInventoryItemError(product_id, existing.id)

                item = InventoryItem(
                    product_id=product_id,
                    product_name=product_name,
                    product_type=product_type,
                    sku=generate_sku(product_type, product_name, self._clock()),
                    supplier=supplier,
                    location=location,
                    stock_levels=levels,
                    notes=request.notes,
                )
                change = await self._write(
                    "create_item", deadline, item.id, self._mutator.create_item(item, actor)
                )

        await self._evaluate_alerts(change.item.id)
        return change.item

    async def update_item(
        self,
        item_id: str,
        request: UpdateInventoryItemRequest,
        actor: Actor,
        timeout: float | None = None,
    ) -> InventoryItem:
        """
        Partially update an item.

        Stock differences become adjustment movements written with the item.

        Raises:
            InventoryItemNotFoundError: item does not exist
            ValidationError: bad field values
            StockRemainingError: a removed size still holds stock
        """
        item_id = _require_text("item_id", item_id)
        actor = _require_actor(actor)
        supplier = None if request.supplier is None else _require_text("supplier", request.supplier)
        location = None if request.location is None else _require_text("location", request.location)

        async with self._deadline("update_item", timeout) as deadline:
            async with self._locks.hold(item_id):
                item = await self._require_item(item_id)
                updated = item.model_copy(deep=True)
                if supplier is not None:
                    updated.supplier = supplier
                if location is not None:
                    updated.location = location
                if request.notes is not None:
                    updated.notes = request.notes
                if request.stock_levels is not None:
                    updated.stock_levels = _build_levels(request.stock_levels, existing=item)

                change = await self._write(
                    "update_item", deadline, item_id, self._mutator.replace_item(updated, actor)
                )

        await self._evaluate_alerts(change.item.id)
        return change.item

    async def delete_item(self, item_id: str, timeout: float | None = None) -> None:
        """
        Stop tracking an item. Its movements stay in the ledger.

        Raises:
            InventoryItemNotFoundError: item does not exist
            StockRemainingError: the item still holds stock
        """
        item_id = _require_text("item_id", item_id)
        async with self._deadline("delete_item", timeout):
            async with self._locks.hold(item_id):
                item = await self._require_item(item_id)
                if item.total_stock > 0:
                    raise StockRemainingError(item_id, item.total_stock)
                if not await self._inventory_store.delete_item(item_id):
                    raise InventoryItemNotFoundError(item_id)

        self._pending_alerts.discard(item_id)
        logger.info("inventory_item_removed", item_id=item_id, product_id=item.product_id)

    async def get_item(self, item_id: str, timeout: float | None = None) -> InventoryItem:
        item_id = _require_text("item_id", item_id)
        async with self._deadline("get_item", timeout):
            return await self._require_item(item_id)

    async def get_item_by_product(
        self, product_id: str, timeout: float | None = None
    ) -> InventoryItem:
        product_id = _require_text("product_id", product_id)
        async with self._deadline("get_item_by_product", timeout):
            return await self._require_product_item(product_id)

    async def list_items(
        self,
        filters: InventoryFilters | None = None,
        timeout: float | None = None,
    ) -> list[InventoryItem]:
        async with self._deadline("list_items", timeout):
            items = await self._inventory_store.list_items()
        if filters is None:
            return items
        return [item for item in items if filters.matches(item)]

    # ------------------------------------------------------------------
    # Stock operations
    # ------------------------------------------------------------------

    async def adjust_stock(
        self,
        item_id: str,
        adjustments: Sequence[StockAdjustment | StockAdjustmentInput],
        actor: Actor,
        timeout: float | None = None,
    ) -> StockChange:
        """
        Apply administrative deltas. Deductions clamp at zero.

        Raises:
            InventoryItemNotFoundError: item does not exist
            ValidationError: empty request, unknown size, zero delta
        """
        actor = _require_actor(actor)
        item_id = _require_text("item_id", item_id)
        entries = [
            a if isinstance(a, StockAdjustment) else StockAdjustment(**a.model_dump())
            for a in adjustments
        ]

        async with self._deadline("adjust_stock", timeout) as deadline:
            async with self._locks.hold(item_id):
                change = await self._write(
                    "adjust_stock", deadline, item_id, self._mutator.adjust_stock(item_id, entries, actor)
                )

        await self._evaluate_alerts(item_id)
        return change

    async def process_movement(
        self,
        product_id: str,
        size: str,
        quantity: int,
        movement_type: MovementType | str,
        reason: MovementReason | str,
        actor: Actor,
        reference: str | None = None,
        unit_cost: float | None = None,
        notes: str | None = None,
        timeout: float | None = None,
    ) -> StockChange:
        """
        Apply one business movement.

        Raises:
            ProductNotFoundError: no inventory for the product
            ValidationError: bad quantity, type, reason or size
            InsufficientStockError: outbound quantity exceeds stock
        """
        actor = _require_actor(actor)
        product_id = _require_text("product_id", product_id)

        async with self._deadline("process_movement", timeout) as deadline:
            async with self._hold_product_item(product_id) as item:
                write = self._mutator.process_movement(
                    product_id=product_id,
                    size=size,
                    quantity=quantity,
                    movement_type=movement_type,
                    reason=reason,
                    actor=actor,
                    reference=reference,
                    unit_cost=unit_cost,
                    notes=notes,
                )
                change = await self._write("process_movement", deadline, item.id, write)

        await self._evaluate_alerts(change.item.id)
        return change

    async def record_sale(
        self,
        product_id: str,
        size: str,
        quantity: int,
        actor: Actor,
        reference: str | None = None,
        notes: str | None = None,
        timeout: float | None = None,
    ) -> StockChange:
        return await self.process_movement(
            product_id, size, quantity, MovementType.OUT, MovementReason.SALE,
            actor, reference=reference, notes=notes, timeout=timeout,
        )

    async def record_purchase(
        self,
        product_id: str,
        size: str,
        quantity: int,
        actor: Actor,
        unit_cost: float | None = None,
        reference: str | None = None,
        notes: str | None = None,
        timeout: float | None = None,
    ) -> StockChange:
        return await self.process_movement(
            product_id, size, quantity, MovementType.IN, MovementReason.PURCHASE,
            actor, reference=reference, unit_cost=unit_cost, notes=notes, timeout=timeout,
        )

    async def record_return(
        self,
        product_id: str,
        size: str,
        quantity: int,
        actor: Actor,
        reference: str | None = None,
        notes: str | None = None,
        timeout: float | None = None,
    ) -> StockChange:
        return await self.process_movement(
            product_id, size, quantity, MovementType.IN, MovementReason.RETURN,
            actor, reference=reference, notes=notes, timeout=timeout,
        )

    async def record_waste(
        self,
        product_id: str,
        size: str,
        quantity: int,
        actor: Actor,
        notes: str | None = None,
        timeout: float | None = None,
    ) -> StockChange:
        return await self.process_movement(
            product_id, size, quantity, MovementType.OUT, MovementReason.WASTE,
            actor, notes=notes, timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Stats, alerts, movements
    # ------------------------------------------------------------------

    async def get_stats(self, timeout: float | None = None) -> InventoryStats:
        async with self._deadline("get_stats", timeout):
            await self._flush_pending_alerts()
            items = await self._inventory_store.list_items()
            alerts_count = await self._alert_store.count_unread()

        total_stock = sum(item.total_stock for item in items)
        statuses = [item.status for item in items]
        return InventoryStats(
            total_items=len(items),
            total_value=sum(item.total_value for item in items),
            low_stock_count=statuses.count(ItemStatus.LOW_STOCK),
            out_of_stock_count=statuses.count(ItemStatus.OUT_OF_STOCK),
            alerts_count=alerts_count,
            average_stock_level=total_stock / len(items) if items else 0.0,
        )

    async def list_alerts(
        self, unread_only: bool = False, timeout: float | None = None
    ) -> list[StockAlert]:
        async with self._deadline("list_alerts", timeout):
            await self._flush_pending_alerts()
            return await self._alert_store.list_alerts(unread_only=unread_only)

    async def mark_alert_read(self, alert_id: str, timeout: float | None = None) -> None:
        alert_id = _require_text("alert_id", alert_id)
        async with self._deadline("mark_alert_read", timeout):
            if not await self._alert_store.mark_read(alert_id):
                raise AlertNotFoundError(alert_id)
        logger.info("stock_alert_read", alert_id=alert_id)

    async def list_movements(
        self,
        product_id: str | None = None,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> list[StockMovement]:
        """Movements newest first. ``limit`` is capped at the configured maximum."""
        if limit is None:
            limit = self._movement_default
        if limit < 1:
            raise ValidationError("limit", "Must be at least 1", limit)
        limit = min(limit, self._movement_max)

        async with self._deadline("list_movements", timeout):
            return await self._inventory_store.list_movements(product_id, limit=limit)

    # ------------------------------------------------------------------
    # Forecasting
    # ------------------------------------------------------------------

    async def generate_forecast(
        self,
        product_id: str,
        period: ForecastPeriod | str = ForecastPeriod.MONTHLY,
        timeout: float | None = None,
    ) -> StockForecast:
        async with self._deadline("generate_forecast", timeout):
            return await self._forecast_engine.generate_forecast(product_id, period)

    async def list_forecasts(
        self, product_id: str | None = None, timeout: float | None = None
    ) -> list[StockForecast]:
        async with self._deadline("list_forecasts", timeout):
            return await self._forecast_engine.list_forecasts(product_id)

    async def get_sales_velocity(
        self,
        product_id: str,
        period: ForecastPeriod | str = ForecastPeriod.MONTHLY,
        timeout: float | None = None,
    ) -> SalesVelocity:
        async with self._deadline("get_sales_velocity", timeout):
            return await self._forecast_engine.calculate_sales_velocity(product_id, period)
