"""
Velocity & Forecast Engine.

Derives sales velocity and stock forecasts from the movement ledger.
Forecasts are recomputed on demand and upserted, one per product and period.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from stockledger.config import get_logger
from stockledger.core.entities import (
    ForecastFactor,
    ForecastPeriod,
    InventoryItem,
    MovementType,
    SalesTrend,
    SalesVelocity,
    StockForecast,
    StockMovement,
    utc_now,
)
from stockledger.core.exceptions import ProductNotFoundError, ValidationError
from stockledger.core.interfaces import IForecastStore, IInventoryStore

logger = get_logger(__name__)

# Lookback window per period, in days
PERIOD_DAYS: dict[ForecastPeriod, int] = {
    ForecastPeriod.WEEKLY: 7,
    ForecastPeriod.MONTHLY: 30,
    ForecastPeriod.QUARTERLY: 90,
}

# Reorder when the projected stockout is at most this many days away
REORDER_THRESHOLD_DAYS: dict[ForecastPeriod, int] = {
    ForecastPeriod.WEEKLY: 7,
    ForecastPeriod.MONTHLY: 14,
    ForecastPeriod.QUARTERLY: 30,
}

# Relative change beyond which a trend is no longer "stable"
TREND_TOLERANCE = 0.1

# Static explanatory weights, not a computed attribution
DEFAULT_FACTORS: tuple[ForecastFactor, ...] = (
    ForecastFactor(
        name="Historical Sales",
        impact=0.7,
        description="Based on recent sales patterns",
    ),
    ForecastFactor(
        name="Stock Status",
        impact=0.2,
        description="Current stock level analysis",
    ),
    ForecastFactor(
        name="Seasonality",
        impact=0.1,
        description="Seasonal demand patterns",
    ),
)


def parse_period(period: ForecastPeriod | str) -> ForecastPeriod:
    try:
        return ForecastPeriod(period)
    except ValueError:
        allowed = ", ".join(p.value for p in ForecastPeriod)
        raise ValidationError("period", f"Must be one of: {allowed}", period) from None


def outbound_between(
    movements: Iterable[StockMovement], start: datetime, end: datetime
) -> list[StockMovement]:
    """Outbound movements with start <= created_at <= end."""
    return [
        m
        for m in movements
        if m.movement_type == MovementType.OUT and start <= m.created_at <= end
    ]


def daily_velocity(movements: Iterable[StockMovement], window_days: int) -> float:
    """Average outbound units per day over the window."""
    return sum(m.quantity for m in movements) / window_days


def confidence_level(observed: int, window_days: int) -> int:
    """
    Share of the expected semi-daily sample count actually observed, 0-100.

    ``observed`` counts every outbound movement in the fetched history, not
    only those inside the window: older sales still back the estimate.
    """
    expected = window_days / 2
    return round(min(observed / expected, 1) * 100)


def project_forecast(
    item: InventoryItem,
    movements: Iterable[StockMovement],
    period: ForecastPeriod,
    now: datetime,
    no_stockout_sentinel: int = 999,
) -> StockForecast:
    """
    Build a forecast from item state and ledger history.

    Pure function: no storage access, deterministic for a given ``now``.
    """
    window_days = PERIOD_DAYS[period]
    outbound = [m for m in movements if m.movement_type == MovementType.OUT]
    window = outbound_between(outbound, now - timedelta(days=window_days), now)

    velocity = daily_velocity(window, window_days)
    current_stock = item.total_stock
    predicted_sales = velocity * window_days
    projected_stock = max(0.0, current_stock - predicted_sales)

    if velocity > 0:
        days_until_stockout = math.floor(current_stock / velocity)
    else:
        days_until_stockout = no_stockout_sentinel

    reorder = days_until_stockout <= REORDER_THRESHOLD_DAYS[period]

    recommended = 0
    if reorder:
        max_total = sum(level.max_stock for level in item.stock_levels)
        min_total = sum(level.min_stock for level in item.stock_levels)
        recommended = math.ceil(max(max_total - projected_stock, min_total))

    return StockForecast(
        product_id=item.product_id,
        product_name=item.product_name,
        period=period,
        current_stock=current_stock,
        projected_stock=projected_stock,
        predicted_sales=predicted_sales,
        daily_velocity=velocity,
        days_until_stockout=days_until_stockout,
        reorder_recommendation=reorder,
        recommended_order_quantity=recommended,
        confidence_level=confidence_level(len(outbound), window_days),
        factors=[f.model_copy() for f in DEFAULT_FACTORS],
        created_at=now,
        updated_at=now,
    )


class ForecastEngine:
    """Computes velocity and maintains one live forecast per product+period."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        forecast_store: IForecastStore,
        history_limit: int = 100,
        no_stockout_sentinel: int = 999,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._inventory_store = inventory_store
        self._forecast_store = forecast_store
        self._history_limit = history_limit
        self._sentinel = no_stockout_sentinel
        self._clock = clock

    async def generate_forecast(
        self, product_id: str, period: ForecastPeriod | str
    ) -> StockForecast:
        """
        Regenerate and store the forecast for a product.

        Raises:
            ProductNotFoundError: no inventory for the product
            ValidationError: unknown period
        """
        period = parse_period(period)
        item = await self._inventory_store.get_item_by_product(product_id)
        if item is None:
            raise ProductNotFoundError(product_id)

        movements = await self._inventory_store.list_movements(
            product_id, limit=self._history_limit
        )
        forecast = project_forecast(
            item, movements, period, self._clock(), self._sentinel
        )
        stored = await self._forecast_store.upsert_forecast(forecast)

        logger.info(
            "stock_forecast_generated",
            product_id=product_id,
            period=period.value,
            velocity=round(stored.daily_velocity, 4),
            days_until_stockout=stored.days_until_stockout,
            reorder=stored.reorder_recommendation,
            confidence=stored.confidence_level,
        )
        return stored

    async def calculate_sales_velocity(
        self, product_id: str, period: ForecastPeriod | str
    ) -> SalesVelocity:
        """Compare velocity in the latest window with the one before it."""
        period = parse_period(period)
        item = await self._inventory_store.get_item_by_product(product_id)
        if item is None:
            raise ProductNotFoundError(product_id)

        movements = await self._inventory_store.list_movements(
            product_id, limit=self._history_limit
        )
        now = self._clock()
        window = timedelta(days=PERIOD_DAYS[period])
        days = PERIOD_DAYS[period]

        current = daily_velocity(outbound_between(movements, now - window, now), days)
        # Previous window excludes its upper bound so no movement counts twice
        previous_window = [
            m
            for m in outbound_between(movements, now - 2 * window, now - window)
            if m.created_at < now - window
        ]
        previous = daily_velocity(previous_window, days)

        if previous > 0:
            change = (current - previous) / previous
        else:
            change = 1.0 if current > 0 else 0.0

        if change > TREND_TOLERANCE:
            trend = SalesTrend.INCREASING
        elif change < -TREND_TOLERANCE:
            trend = SalesTrend.DECREASING
        else:
            trend = SalesTrend.STABLE

        return SalesVelocity(
            product_id=product_id,
            product_name=item.product_name,
            period=period,
            current=current,
            previous=previous,
            change=change,
            trend=trend,
        )

    async def list_forecasts(self, product_id: str | None = None) -> list[StockForecast]:
        return await self._forecast_store.list_forecasts(product_id)
