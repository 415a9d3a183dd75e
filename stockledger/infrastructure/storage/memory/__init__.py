"""In-memory storage implementations."""

from stockledger.infrastructure.storage.memory.ledger_store import (
    InMemoryAlertStore,
    InMemoryForecastStore,
    InMemoryInventoryStore,
)

__all__ = [
    "InMemoryAlertStore",
    "InMemoryForecastStore",
    "InMemoryInventoryStore",
]
