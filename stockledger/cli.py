"""
StockLedger management CLI.

Usage:
    stockledger serve      Start the HTTP API
    stockledger migrate    Apply pending SQLite migrations
"""

import argparse
import asyncio
import sys

from stockledger.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port
    print(f"Starting server on {host}:{port} ({settings.storage.backend} backend)...")
    uvicorn.run(
        "stockledger.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
    )


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations to the configured database."""
    from stockledger.core.exceptions import PersistenceError
    from stockledger.infrastructure.storage.sqlite import run_migrations

    settings = get_settings()
    configure_logging(settings)
    db_path = settings.storage.db_path

    try:
        results = asyncio.run(run_migrations(db_path))
    except PersistenceError as e:
        print(f"Migration failed: {e.message}")
        sys.exit(1)

    if not results:
        print(f"{db_path}: schema is up to date.")
    for result in results:
        print(f"{db_path}: applied v{result.version}_{result.name} ({result.execution_time_ms} ms)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="StockLedger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the HTTP API")
    p_serve.add_argument("--host", default=None, help="Bind host (default: API_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending SQLite migrations")
    p_migrate.set_defaults(func=cmd_migrate)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
