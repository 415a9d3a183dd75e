"""Versioned SQL migrations for the SQLite ledger backend."""

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    MIGRATIONS_DIR,
    MigrationInfo,
    MigrationResult,
    discover_migrations,
    get_applied_migrations,
    run_migrations,
)

__all__ = [
    "MIGRATIONS_DIR",
    "MigrationInfo",
    "MigrationResult",
    "discover_migrations",
    "get_applied_migrations",
    "run_migrations",
]
