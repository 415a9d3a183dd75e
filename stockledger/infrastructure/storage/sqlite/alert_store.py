"""SQLite implementation of stock alert storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities import AlertSeverity, AlertType, StockAlert
from stockledger.core.interfaces import IAlertStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    from_db_timestamp,
    to_db_timestamp,
    translate_errors,
)

logger = get_logger(__name__)


class SQLiteAlertStore(IAlertStore):
    """SQLite implementation of stock alert storage."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def add_alert(self, alert: StockAlert) -> StockAlert:
        with translate_errors("add_alert"):
            async with self._pool.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO stock_alerts (
                        id, product_id, product_name, size, alert_type, severity,
                        current_stock, threshold, message, is_read, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        alert.id,
                        alert.product_id,
                        alert.product_name,
                        alert.size,
                        alert.alert_type.value,
                        alert.severity.value,
                        alert.current_stock,
                        alert.threshold,
                        alert.message,
                        int(alert.is_read),
                        to_db_timestamp(alert.created_at),
                    ),
                )
        logger.debug("stock_alert_stored", alert_id=alert.id, type=alert.alert_type.value)
        return alert.model_copy()

    async def get_alert(self, alert_id: str) -> StockAlert | None:
        with translate_errors("get_alert"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM stock_alerts WHERE id = ?", (alert_id,)
                )
                row = await cursor.fetchone()
        return self._row_to_alert(row) if row else None

    async def find_unread(
        self, product_id: str, size: str, alert_type: AlertType
    ) -> StockAlert | None:
        with translate_errors("find_unread"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    """
                    SELECT * FROM stock_alerts
                    WHERE product_id = ? AND size = ? AND alert_type = ? AND is_read = 0
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT 1
                    """,
                    (product_id, size, AlertType(alert_type).value),
                )
                row = await cursor.fetchone()
        return self._row_to_alert(row) if row else None

    async def update_alert(self, alert: StockAlert) -> StockAlert:
        with translate_errors("update_alert"):
            async with self._pool.transaction() as conn:
                await conn.execute(
                    """
                    UPDATE stock_alerts SET
                        product_name = ?,
                        severity = ?,
                        current_stock = ?,
                        threshold = ?,
                        message = ?,
                        is_read = ?
                    WHERE id = ?
                    """,
                    (
                        alert.product_name,
                        alert.severity.value,
                        alert.current_stock,
                        alert.threshold,
                        alert.message,
                        int(alert.is_read),
                        alert.id,
                    ),
                )
        return alert.model_copy()

    async def list_alerts(self, unread_only: bool = False) -> list[StockAlert]:
        query = "SELECT * FROM stock_alerts"
        if unread_only:
            query += " WHERE is_read = 0"
        query += " ORDER BY created_at DESC, rowid DESC"

        with translate_errors("list_alerts"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(query)
                rows = await cursor.fetchall()
        return [self._row_to_alert(row) for row in rows]

    async def mark_read(self, alert_id: str) -> bool:
        with translate_errors("mark_read"):
            async with self._pool.transaction() as conn:
                cursor = await conn.execute(
                    "UPDATE stock_alerts SET is_read = 1 WHERE id = ?", (alert_id,)
                )
                return cursor.rowcount > 0

    async def count_unread(self) -> int:
        with translate_errors("count_unread"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT COUNT(*) FROM stock_alerts WHERE is_read = 0"
                )
                row = await cursor.fetchone()
        return row[0] if row else 0

    def _row_to_alert(self, row: aiosqlite.Row) -> StockAlert:
        """Convert database row to StockAlert."""
        return StockAlert(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            size=row["size"],
            alert_type=AlertType(row["alert_type"]),
            severity=AlertSeverity(row["severity"]),
            current_stock=row["current_stock"],
            threshold=row["threshold"],
            message=row["message"],
            is_read=bool(row["is_read"]),
            created_at=from_db_timestamp(row["created_at"]),
        )
