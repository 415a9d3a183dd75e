"""Demand forecast entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import new_id, utc_now


class ForecastPeriod(str, Enum):
    """Forecast horizon, which also sizes the lookback window."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class SalesTrend(str, Enum):
    """Direction of sales velocity between two windows."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ForecastFactor(BaseModel):
    """Named explanatory factor with a relative weight."""

    name: str
    impact: float
    description: str = ""


class SalesVelocity(BaseModel):
    """Outbound units per day for the latest and the preceding window."""

    product_id: str
    product_name: str = ""
    period: ForecastPeriod
    current: float = 0.0
    previous: float = 0.0
    change: float = 0.0
    trend: SalesTrend = SalesTrend.STABLE


class StockForecast(BaseModel):
    """Projected stock position for one product over one period."""

    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str = ""
    period: ForecastPeriod
    current_stock: int
    projected_stock: float
    predicted_sales: float
    daily_velocity: float = 0.0
    days_until_stockout: int
    reorder_recommendation: bool
    recommended_order_quantity: int
    confidence_level: int = Field(ge=0, le=100)
    factors: list[ForecastFactor] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
