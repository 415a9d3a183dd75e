"""SQLite implementation of inventory and movement ledger storage."""

import json

import aiosqlite
from pydantic import TypeAdapter

from stockledger.config import get_logger
from stockledger.core.entities import (
    Actor,
    InventoryItem,
    MovementReason,
    MovementType,
    StockLevel,
    StockMovement,
)
from stockledger.core.exceptions import (
    DuplicateInventoryItemError,
    InventoryItemNotFoundError,
    PersistenceError,
)
from stockledger.core.interfaces import IInventoryStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    from_db_timestamp,
    to_db_timestamp,
    translate_errors,
)

logger = get_logger(__name__)

_levels_adapter = TypeAdapter(list[StockLevel])


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of inventory item and stock movement storage."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def create_item(
        self, item: InventoryItem, movements: list[StockMovement] | None = None
    ) -> InventoryItem:
        """Insert a new item and its opening movements in one transaction."""
        conflict: aiosqlite.IntegrityError | None = None
        with translate_errors("create_item"):
            try:
                async with self._pool.transaction() as conn:
                    await conn.execute(
                        """
                        INSERT INTO inventory_items (
                            id, product_id, product_name, product_type, sku,
                            supplier, location, stock_levels_json, notes,
                            created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            item.id,
                            item.product_id,
                            item.product_name,
                            item.product_type,
                            item.sku,
                            item.supplier,
                            item.location,
                            self._dump_levels(item),
                            item.notes,
                            to_db_timestamp(item.created_at),
                            to_db_timestamp(item.updated_at),
                        ),
                    )
                    await self._insert_movements(conn, movements or [])
            except aiosqlite.IntegrityError as e:
                conflict = e

        if conflict is not None:
            existing = await self.get_item_by_product(item.product_id)
            if existing is None:
                raise PersistenceError("create_item", str(conflict)) from conflict
            raise DuplicateInventoryItemError(item.product_id, existing.id) from conflict

        logger.debug("inventory_item_stored", item_id=item.id, product_id=item.product_id)
        return item.model_copy(deep=True)

    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get inventory item by ID."""
        with translate_errors("get_item"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM inventory_items WHERE id = ?", (item_id,)
                )
                row = await cursor.fetchone()
        return self._row_to_item(row) if row else None

    async def get_item_by_product(self, product_id: str) -> InventoryItem | None:
        """Get inventory item by product ID."""
        with translate_errors("get_item_by_product"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM inventory_items WHERE product_id = ?", (product_id,)
                )
                row = await cursor.fetchone()
        return self._row_to_item(row) if row else None

    async def list_items(self) -> list[InventoryItem]:
        """List all items, most recently updated first."""
        with translate_errors("list_items"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM inventory_items ORDER BY updated_at DESC, rowid DESC"
                )
                rows = await cursor.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def commit_stock_change(
        self, item: InventoryItem, movements: list[StockMovement]
    ) -> InventoryItem:
        """Update the item row and append movements in one transaction."""
        with translate_errors("commit_stock_change"):
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE inventory_items SET
                        product_name = ?,
                        product_type = ?,
                        sku = ?,
                        supplier = ?,
                        location = ?,
                        stock_levels_json = ?,
                        notes = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        item.product_name,
                        item.product_type,
                        item.sku,
                        item.supplier,
                        item.location,
                        self._dump_levels(item),
                        item.notes,
                        to_db_timestamp(item.updated_at),
                        item.id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise InventoryItemNotFoundError(item.id)
                await self._insert_movements(conn, movements)

        return item.model_copy(deep=True)

    async def delete_item(self, item_id: str) -> bool:
        """Delete an item row. Its movements stay in the ledger."""
        with translate_errors("delete_item"):
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(
                    "DELETE FROM inventory_items WHERE id = ?", (item_id,)
                )
                deleted = cursor.rowcount > 0
        if deleted:
            logger.info("inventory_item_deleted", item_id=item_id)
        return deleted

    async def list_movements(
        self, product_id: str | None = None, limit: int = 50
    ) -> list[StockMovement]:
        """Get movements, newest first."""
        query = "SELECT * FROM stock_movements"
        params: list = []
        if product_id is not None:
            query += " WHERE product_id = ?"
            params.append(product_id)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with translate_errors("list_movements"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(query, params)
                rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    async def _insert_movements(
        self, conn: aiosqlite.Connection, movements: list[StockMovement]
    ) -> None:
        if not movements:
            return
        await conn.executemany(
            """
            INSERT INTO stock_movements (
                id, product_id, product_name, product_type, size,
                movement_type, reason, quantity, unit_cost, reference,
                user_id, user_email, location, notes, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    m.id,
                    m.product_id,
                    m.product_name,
                    m.product_type,
                    m.size,
                    m.movement_type.value,
                    m.reason.value,
                    m.quantity,
                    m.unit_cost,
                    m.reference,
                    m.actor.user_id,
                    m.actor.user_email,
                    m.location,
                    m.notes,
                    to_db_timestamp(m.created_at),
                )
                for m in movements
            ],
        )

    @staticmethod
    def _dump_levels(item: InventoryItem) -> str:
        return json.dumps([level.model_dump(mode="json") for level in item.stock_levels])

    def _row_to_item(self, row: aiosqlite.Row) -> InventoryItem:
        """Convert database row to InventoryItem."""
        return InventoryItem(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            product_type=row["product_type"],
            sku=row["sku"],
            supplier=row["supplier"],
            location=row["location"],
            stock_levels=_levels_adapter.validate_json(row["stock_levels_json"]),
            notes=row["notes"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )

    def _row_to_movement(self, row: aiosqlite.Row) -> StockMovement:
        """Convert database row to StockMovement."""
        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            product_type=row["product_type"],
            size=row["size"],
            movement_type=MovementType(row["movement_type"]),
            reason=MovementReason(row["reason"]),
            quantity=row["quantity"],
            unit_cost=row["unit_cost"],
            reference=row["reference"],
            actor=Actor(user_id=row["user_id"], user_email=row["user_email"]),
            location=row["location"],
            notes=row["notes"],
            created_at=from_db_timestamp(row["created_at"]),
        )
