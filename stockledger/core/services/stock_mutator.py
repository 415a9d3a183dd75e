"""
Stock Mutator.

The only code path that changes ``current_stock``. Every change it makes is
paired with ledger movements and committed through a single atomic store
call. Callers are expected to hold the item's lock.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from stockledger.config import get_logger
from stockledger.core.entities import (
    Actor,
    InventoryItem,
    MovementReason,
    MovementType,
    StockAdjustment,
    StockMovement,
    utc_now,
)
from stockledger.core.exceptions import (
    InsufficientStockError,
    InventoryItemNotFoundError,
    ProductNotFoundError,
    StockRemainingError,
    ValidationError,
)
from stockledger.core.interfaces import IInventoryStore

logger = get_logger(__name__)

# Reasons that only make sense in one direction
REASON_DIRECTIONS: dict[MovementReason, MovementType] = {
    MovementReason.SALE: MovementType.OUT,
    MovementReason.WASTE: MovementType.OUT,
    MovementReason.PURCHASE: MovementType.IN,
    MovementReason.RETURN: MovementType.IN,
}


@dataclass
class StockChange:
    """Committed item state plus the movements written with it."""

    item: InventoryItem
    movements: list[StockMovement] = field(default_factory=list)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(field_name, f"Must be one of: {allowed}", value) from None


def _join_notes(*parts: str | None) -> str | None:
    text = "; ".join(p for p in parts if p)
    return text or None


class StockMutator:
    """Applies stock deltas and typed movements to inventory items."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = inventory_store
        self._clock = clock

    async def adjust_stock(
        self,
        item_id: str,
        adjustments: list[StockAdjustment],
        actor: Actor,
    ) -> StockChange:
        """
        Apply administrative deltas to one or more sizes.

        Resulting stock is clamped at zero rather than rejected. One movement
        is written per entry that actually moved stock; all levels and
        movements are committed together.

        Raises:
            InventoryItemNotFoundError: item does not exist
            ValidationError: empty request, unknown size, zero delta or
                negative unit cost
        """
        if not adjustments:
            raise ValidationError("adjustments", "At least one adjustment is required")

        item = await self._store.get_item(item_id)
        if item is None:
            raise InventoryItemNotFoundError(item_id)

        updated = item.model_copy(deep=True)
        targets = []
        for adj in adjustments:
            level = updated.get_level(adj.size)
            if level is None:
                raise ValidationError("size", f"Stock level not found for size: {adj.size}", adj.size)
            if not _is_int(adj.delta_quantity) or adj.delta_quantity == 0:
                raise ValidationError(
                    "delta_quantity", "Delta must be a non-zero integer", adj.delta_quantity
                )
            if adj.unit_cost is not None and adj.unit_cost < 0:
                raise ValidationError("unit_cost", "Unit cost cannot be negative", adj.unit_cost)
            targets.append((adj, level))

        now = self._clock()
        movements: list[StockMovement] = []

        for adj, level in targets:
            before = level.current_stock
            requested = before + adj.delta_quantity
            after = max(0, requested)

            level.current_stock = after
            if adj.delta_quantity > 0:
                level.last_restocked = now
                if adj.unit_cost is not None:
                    level.cost = adj.unit_cost

            notes = adj.notes
            if after != requested:
                logger.warning(
                    "stock_adjustment_clamped",
                    item_id=item.id,
                    size=adj.size,
                    current=before,
                    delta=adj.delta_quantity,
                )
                notes = _join_notes(notes, f"requested {adj.delta_quantity:+d}, clamped at zero")

            moved = after - before
            if moved == 0:
                continue

            movements.append(
                self._movement(
                    updated,
                    size=adj.size,
                    movement_type=MovementType.IN if moved > 0 else MovementType.OUT,
                    reason=adj.reason,
                    quantity=abs(moved),
                    actor=actor,
                    now=now,
                    unit_cost=adj.unit_cost,
                    notes=notes,
                )
            )

        updated.updated_at = now
        committed = await self._store.commit_stock_change(updated, movements)

        logger.info(
            "stock_adjusted",
            item_id=item.id,
            entries=len(adjustments),
            movements=len(movements),
            total_stock=committed.total_stock,
        )
        return StockChange(item=committed, movements=movements)

    async def process_movement(
        self,
        product_id: str,
        size: str,
        quantity: int,
        movement_type: MovementType,
        reason: MovementReason,
        actor: Actor,
        reference: str | None = None,
        unit_cost: float | None = None,
        notes: str | None = None,
    ) -> StockChange:
        """
        Apply one business movement (sale, purchase, return, waste).

        Unlike adjust_stock, an outbound movement larger than the available
        stock is rejected and nothing is written.

        Raises:
            ProductNotFoundError: no inventory for the product
            ValidationError: bad quantity, type, reason or size
            InsufficientStockError: outbound quantity exceeds current stock
        """
        movement_type = _coerce(MovementType, movement_type, "movement_type")
        reason = _coerce(MovementReason, reason, "reason")

        if not _is_int(quantity) or quantity <= 0:
            raise ValidationError("quantity", "Quantity must be a positive integer", quantity)
        if movement_type not in (MovementType.IN, MovementType.OUT):
            raise ValidationError(
                "movement_type", "Movement type must be 'in' or 'out'", movement_type.value
            )
        expected = REASON_DIRECTIONS.get(reason)
        if expected is not None and expected != movement_type:
            raise ValidationError(
                "reason",
                f"Reason '{reason.value}' requires movement type '{expected.value}'",
                reason.value,
            )
        if unit_cost is not None and unit_cost < 0:
            raise ValidationError("unit_cost", "Unit cost cannot be negative", unit_cost)

        item = await self._store.get_item_by_product(product_id)
        if item is None:
            raise ProductNotFoundError(product_id)

        updated = item.model_copy(deep=True)
        level = updated.get_level(size)
        if level is None:
            raise ValidationError("size", f"Stock level not found for size: {size}", size)

        if movement_type == MovementType.OUT and level.current_stock < quantity:
            raise InsufficientStockError(
                product_id=product_id,
                size=size,
                requested=quantity,
                available=level.current_stock,
            )

        now = self._clock()

        if movement_type == MovementType.IN:
            level.current_stock += quantity
            level.last_restocked = now
            if unit_cost is not None:
                level.cost = unit_cost
        else:
            level.current_stock -= quantity
        updated.updated_at = now

        movement = self._movement(
            updated,
            size=size,
            movement_type=movement_type,
            reason=reason,
            quantity=quantity,
            actor=actor,
            now=now,
            unit_cost=unit_cost,
            reference=reference,
            notes=notes,
        )
        committed = await self._store.commit_stock_change(updated, [movement])

        logger.info(
            "stock_movement_processed",
            product_id=product_id,
            size=size,
            type=movement_type.value,
            reason=reason.value,
            qty=quantity,
            remaining=level.current_stock,
        )
        return StockChange(item=committed, movements=[movement])

    async def create_item(self, item: InventoryItem, actor: Actor) -> StockChange:
        """Insert a new item, recording any opening stock as movements."""
        now = self._clock()
        item = item.model_copy(deep=True)
        item.created_at = now
        item.updated_at = now
        for level in item.stock_levels:
            if level.current_stock > 0 and level.last_restocked is None:
                level.last_restocked = now

        movements = [
            self._movement(
                item,
                size=level.size,
                movement_type=MovementType.IN,
                reason=MovementReason.ADJUSTMENT,
                quantity=level.current_stock,
                actor=actor,
                now=now,
                unit_cost=level.cost,
                notes="Opening balance",
            )
            for level in item.stock_levels
            if level.current_stock > 0
        ]
        created = await self._store.create_item(item, movements)

        logger.info(
            "inventory_item_created",
            item_id=created.id,
            product_id=created.product_id,
            opening_movements=len(movements),
        )
        return StockChange(item=created, movements=movements)

    async def replace_item(self, updated: InventoryItem, actor: Actor) -> StockChange:
        """
        Persist an edited item, logging stock differences per size.

        Sizes that disappear must hold no stock. New sizes with stock and
        changed counts on existing sizes become adjustment movements.
        """
        previous = await self._store.get_item(updated.id)
        if previous is None:
            raise InventoryItemNotFoundError(updated.id)

        now = self._clock()
        updated = updated.model_copy(deep=True)
        updated.updated_at = now

        for old_level in previous.stock_levels:
            if updated.get_level(old_level.size) is None and old_level.current_stock > 0:
                raise StockRemainingError(previous.id, old_level.current_stock, size=old_level.size)

        movements: list[StockMovement] = []
        for level in updated.stock_levels:
            old_level = previous.get_level(level.size)
            before = old_level.current_stock if old_level else 0
            diff = level.current_stock - before
            if diff == 0:
                continue
            if diff > 0:
                level.last_restocked = now
            movements.append(
                self._movement(
                    updated,
                    size=level.size,
                    movement_type=MovementType.IN if diff > 0 else MovementType.OUT,
                    reason=MovementReason.ADJUSTMENT,
                    quantity=abs(diff),
                    actor=actor,
                    now=now,
                    notes="Inventory adjustment",
                )
            )

        committed = await self._store.commit_stock_change(updated, movements)
        logger.info(
            "inventory_item_updated",
            item_id=committed.id,
            movements=len(movements),
        )
        return StockChange(item=committed, movements=movements)

    @staticmethod
    def _movement(
        item: InventoryItem,
        *,
        size: str,
        movement_type: MovementType,
        reason: MovementReason,
        quantity: int,
        actor: Actor,
        now: datetime,
        unit_cost: float | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> StockMovement:
        return StockMovement(
            product_id=item.product_id,
            product_name=item.product_name,
            product_type=item.product_type,
            size=size,
            movement_type=movement_type,
            reason=reason,
            quantity=quantity,
            unit_cost=unit_cost,
            reference=reference,
            actor=actor,
            location=item.location,
            notes=notes,
            created_at=now,
        )
