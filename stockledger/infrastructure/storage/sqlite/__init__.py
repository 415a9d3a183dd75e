"""SQLite storage backend."""

from stockledger.infrastructure.storage.sqlite.alert_store import SQLiteAlertStore
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool
from stockledger.infrastructure.storage.sqlite.forecast_store import SQLiteForecastStore
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteInventoryStore
from stockledger.infrastructure.storage.sqlite.migrations import run_migrations

__all__ = [
    "ConnectionPool",
    "SQLiteAlertStore",
    "SQLiteForecastStore",
    "SQLiteInventoryStore",
    "run_migrations",
]
