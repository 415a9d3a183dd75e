"""
Alert Evaluator.

Turns stock levels into threshold alerts. ``evaluate`` is pure;
``evaluate_and_record`` persists the result under the configured
de-duplication policy.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from stockledger.config import get_logger
from stockledger.core.entities import (
    AlertSeverity,
    AlertType,
    InventoryItem,
    StockAlert,
    StockLevel,
    utc_now,
)
from stockledger.core.interfaces import IAlertStore

logger = get_logger(__name__)


def classify_level(level: StockLevel) -> tuple[AlertType, AlertSeverity, int] | None:
    """
    Return (alert_type, severity, threshold) for a level, or None.

    First match wins, so a level yields at most one alert:
    empty -> out_of_stock/critical, at or below min -> low_stock/medium,
    at or below reorder point -> reorder_point/high.
    """
    if level.current_stock == 0:
        return AlertType.OUT_OF_STOCK, AlertSeverity.CRITICAL, 0
    if level.current_stock <= level.min_stock:
        return AlertType.LOW_STOCK, AlertSeverity.MEDIUM, level.min_stock
    if level.current_stock <= level.reorder_point:
        return AlertType.REORDER_POINT, AlertSeverity.HIGH, level.reorder_point
    return None


def build_alert_message(
    alert_type: AlertType,
    product_name: str,
    size: str,
    current_stock: int,
    threshold: int,
) -> str:
    """Human-readable alert text."""
    if alert_type == AlertType.OUT_OF_STOCK:
        return f"{product_name} ({size}) is out of stock"
    if alert_type == AlertType.LOW_STOCK:
        return (
            f"{product_name} ({size}) is running low: "
            f"{current_stock} remaining (minimum: {threshold})"
        )
    return (
        f"{product_name} ({size}) has reached reorder point: "
        f"{current_stock} remaining (reorder at: {threshold})"
    )


class AlertEvaluator:
    """Derives and records stock alerts for an item."""

    def __init__(
        self,
        alert_store: IAlertStore,
        dedupe_unread: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = alert_store
        self._dedupe_unread = dedupe_unread
        self._clock = clock

    @property
    def dedupe_unread(self) -> bool:
        return self._dedupe_unread

    def evaluate(self, item: InventoryItem) -> list[StockAlert]:
        """Evaluate every level of an item from scratch."""
        now = self._clock()
        alerts: list[StockAlert] = []
        for level in item.stock_levels:
            rule = classify_level(level)
            if rule is None:
                continue
            alert_type, severity, threshold = rule
            alerts.append(
                StockAlert(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    size=level.size,
                    alert_type=alert_type,
                    severity=severity,
                    current_stock=level.current_stock,
                    threshold=threshold,
                    message=build_alert_message(
                        alert_type,
                        item.product_name,
                        level.size,
                        level.current_stock,
                        threshold,
                    ),
                    created_at=now,
                )
            )
        return alerts

    async def evaluate_and_record(self, item: InventoryItem) -> list[StockAlert]:
        """
        Evaluate an item and persist the alerts.

        With de-duplication on, an unread alert for the same
        (product, size, type) is refreshed in place; otherwise every
        evaluation appends new rows.

        Returns:
            The alerts as stored (new or refreshed).
        """
        recorded: list[StockAlert] = []
        created = refreshed = 0

        for alert in self.evaluate(item):
            existing = None
            if self._dedupe_unread:
                existing = await self._store.find_unread(
                    alert.product_id, alert.size, alert.alert_type
                )

            if existing is not None:
                updated = existing.model_copy(
                    update={
                        "severity": alert.severity,
                        "current_stock": alert.current_stock,
                        "threshold": alert.threshold,
                        "message": alert.message,
                    }
                )
                recorded.append(await self._store.update_alert(updated))
                refreshed += 1
            else:
                recorded.append(await self._store.add_alert(alert))
                created += 1

        logger.info(
            "stock_alerts_evaluated",
            product_id=item.product_id,
            created=created,
            refreshed=refreshed,
        )
        return recorded
