"""SQLite implementation of forecast storage."""

import json

import aiosqlite
from pydantic import TypeAdapter

from stockledger.config import get_logger
from stockledger.core.entities import ForecastFactor, ForecastPeriod, StockForecast
from stockledger.core.interfaces import IForecastStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    from_db_timestamp,
    to_db_timestamp,
    translate_errors,
)

logger = get_logger(__name__)

_factors_adapter = TypeAdapter(list[ForecastFactor])


class SQLiteForecastStore(IForecastStore):
    """One row per (product_id, period), replaced on each regeneration."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def upsert_forecast(self, forecast: StockForecast) -> StockForecast:
        with translate_errors("upsert_forecast"):
            async with self._pool.transaction() as conn:
                # id and created_at of an existing row survive the conflict
                await conn.execute(
                    """
                    INSERT INTO stock_forecasts (
                        id, product_id, product_name, period, current_stock,
                        projected_stock, predicted_sales, daily_velocity,
                        days_until_stockout, reorder_recommendation,
                        recommended_order_quantity, confidence_level,
                        factors_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(product_id, period) DO UPDATE SET
                        product_name = excluded.product_name,
                        current_stock = excluded.current_stock,
                        projected_stock = excluded.projected_stock,
                        predicted_sales = excluded.predicted_sales,
                        daily_velocity = excluded.daily_velocity,
                        days_until_stockout = excluded.days_until_stockout,
                        reorder_recommendation = excluded.reorder_recommendation,
                        recommended_order_quantity = excluded.recommended_order_quantity,
                        confidence_level = excluded.confidence_level,
                        factors_json = excluded.factors_json,
                        updated_at = excluded.updated_at
                    """,
                    (
                        forecast.id,
                        forecast.product_id,
                        forecast.product_name,
                        forecast.period.value,
                        forecast.current_stock,
                        forecast.projected_stock,
                        forecast.predicted_sales,
                        forecast.daily_velocity,
                        forecast.days_until_stockout,
                        int(forecast.reorder_recommendation),
                        forecast.recommended_order_quantity,
                        forecast.confidence_level,
                        json.dumps([f.model_dump(mode="json") for f in forecast.factors]),
                        to_db_timestamp(forecast.created_at),
                        to_db_timestamp(forecast.updated_at),
                    ),
                )
                cursor = await conn.execute(
                    "SELECT * FROM stock_forecasts WHERE product_id = ? AND period = ?",
                    (forecast.product_id, forecast.period.value),
                )
                row = await cursor.fetchone()
        logger.debug(
            "stock_forecast_stored",
            product_id=forecast.product_id,
            period=forecast.period.value,
        )
        return self._row_to_forecast(row)

    async def get_forecast(
        self, product_id: str, period: ForecastPeriod
    ) -> StockForecast | None:
        with translate_errors("get_forecast"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM stock_forecasts WHERE product_id = ? AND period = ?",
                    (product_id, ForecastPeriod(period).value),
                )
                row = await cursor.fetchone()
        return self._row_to_forecast(row) if row else None

    async def list_forecasts(self, product_id: str | None = None) -> list[StockForecast]:
        query = "SELECT * FROM stock_forecasts"
        params: list = []
        if product_id is not None:
            query += " WHERE product_id = ?"
            params.append(product_id)
        query += " ORDER BY updated_at DESC, rowid DESC"

        with translate_errors("list_forecasts"):
            async with self._pool.acquire() as conn:
                cursor = await conn.execute(query, params)
                rows = await cursor.fetchall()
        return [self._row_to_forecast(row) for row in rows]

    def _row_to_forecast(self, row: aiosqlite.Row) -> StockForecast:
        """Convert database row to StockForecast."""
        return StockForecast(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            period=ForecastPeriod(row["period"]),
            current_stock=row["current_stock"],
            projected_stock=row["projected_stock"],
            predicted_sales=row["predicted_sales"],
            daily_velocity=row["daily_velocity"],
            days_until_stockout=row["days_until_stockout"],
            reorder_recommendation=bool(row["reorder_recommendation"]),
            recommended_order_quantity=row["recommended_order_quantity"],
            confidence_level=row["confidence_level"],
            factors=_factors_adapter.validate_json(row["factors_json"]),
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
