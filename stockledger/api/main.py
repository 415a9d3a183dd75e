"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockledger.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from stockledger.api.middleware.error_handler import setup_exception_handlers
from stockledger.api.routes import health_router, inventory_router
from stockledger.application import InventoryService, build_inventory_service
from stockledger.config import Settings, configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Prepares storage and the inventory facade on startup and closes the
    connection pool on shutdown.
    """
    settings: Settings = app.state.settings

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        backend=settings.storage.backend,
    )

    pool = None
    if getattr(app.state, "inventory_service", None) is None:
        if settings.storage.backend == "sqlite":
            from stockledger.infrastructure.storage.sqlite import (
                ConnectionPool,
                run_migrations,
            )

            try:
                await run_migrations(settings.storage.db_path)
                logger.info("database_initialized")

                pool = ConnectionPool(
                    settings.storage.db_path,
                    pool_size=settings.storage.pool_size,
                    busy_timeout=settings.storage.busy_timeout,
                )
                await pool.initialize()
                logger.info("connection_pool_ready")
            except Exception as e:
                logger.error("database_init_failed", error=str(e))
                raise

        app.state.inventory_service = build_inventory_service(settings, pool=pool)

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    if pool is not None:
        await pool.close()
    logger.info("application_stopped")


def create_app(
    settings: Settings | None = None,
    inventory_service: InventoryService | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use (global settings when omitted)
        inventory_service: Prebuilt facade; skips storage setup on startup

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="StockLedger API",
        description="Inventory ledger, stock alerts and demand forecasting",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.inventory_service = inventory_service

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(inventory_router)

    return app
