"""Core business services."""

from stockledger.core.services.alert_evaluator import (
    AlertEvaluator,
    build_alert_message,
    classify_level,
)
from stockledger.core.services.forecast_engine import (
    PERIOD_DAYS,
    REORDER_THRESHOLD_DAYS,
    ForecastEngine,
    project_forecast,
)
from stockledger.core.services.item_locks import ItemLockManager
from stockledger.core.services.stock_mutator import StockChange, StockMutator

__all__ = [
    "AlertEvaluator",
    "build_alert_message",
    "classify_level",
    "ForecastEngine",
    "PERIOD_DAYS",
    "REORDER_THRESHOLD_DAYS",
    "project_forecast",
    "ItemLockManager",
    "StockChange",
    "StockMutator",
]
