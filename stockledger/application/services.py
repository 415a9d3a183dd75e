"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to the core services and
hands them to the facade. Nothing here is cached at module level; callers
own the returned objects (and the SQLite pool, when they pass one).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stockledger.application.inventory_service import InventoryService
from stockledger.config import Settings, get_logger, get_settings
from stockledger.core.interfaces import (
    IAlertStore,
    IForecastStore,
    IInventoryStore,
    IProductCatalog,
)
from stockledger.core.services import AlertEvaluator, ForecastEngine, StockMutator

if TYPE_CHECKING:
    from stockledger.infrastructure.storage.sqlite import ConnectionPool

logger = get_logger(__name__)


def build_stores(
    settings: Settings,
    pool: ConnectionPool | None = None,
) -> tuple[IInventoryStore, IAlertStore, IForecastStore]:
    """
    Create the three stores for the configured backend.

    Args:
        settings: Application settings
        pool: SQLite ConnectionPool; created from settings when omitted

    Returns:
        (inventory_store, alert_store, forecast_store)
    """
    if settings.storage.backend == "memory":
        from stockledger.infrastructure.storage.memory import (
            InMemoryAlertStore,
            InMemoryForecastStore,
            InMemoryInventoryStore,
        )

        return InMemoryInventoryStore(), InMemoryAlertStore(), InMemoryForecastStore()

    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import (
        ConnectionPool,
        SQLiteAlertStore,
        SQLiteForecastStore,
        SQLiteInventoryStore,
    )

    if pool is None:
        pool = ConnectionPool(
            settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
    return SQLiteInventoryStore(pool), SQLiteAlertStore(pool), SQLiteForecastStore(pool)


def build_inventory_service(
    settings: Settings | None = None,
    *,
    pool: ConnectionPool | None = None,
    catalog: IProductCatalog | None = None,
) -> InventoryService:
    """
    Build a fully wired InventoryService.

    Args:
        settings: Application settings (global settings when omitted)
        pool: Optional SQLite ConnectionPool shared with the caller
        catalog: Optional product catalog for name/type lookup

    Returns:
        Configured InventoryService
    """
    settings = settings or get_settings()
    inventory_store, alert_store, forecast_store = build_stores(settings, pool)

    service = InventoryService(
        inventory_store=inventory_store,
        alert_store=alert_store,
        forecast_store=forecast_store,
        alert_evaluator=AlertEvaluator(
            alert_store, dedupe_unread=settings.alerts.dedupe_unread
        ),
        forecast_engine=ForecastEngine(
            inventory_store,
            forecast_store,
            history_limit=settings.forecast.history_limit,
            no_stockout_sentinel=settings.forecast.no_stockout_sentinel,
        ),
        stock_mutator=StockMutator(inventory_store),
        catalog=catalog,
        settings=settings,
    )
    logger.info(
        "inventory_service_built",
        backend=settings.storage.backend,
        dedupe_alerts=settings.alerts.dedupe_unread,
    )
    return service
