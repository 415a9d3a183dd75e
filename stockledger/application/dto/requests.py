"""Request DTOs for the inventory facade and HTTP API.

Pydantic v2 models describing the shape of incoming requests. Business
validation (bounds, uniqueness, directions) happens in the facade so that
every caller gets the same ValidationError.
"""

from pydantic import BaseModel, Field

from stockledger.core.entities import ForecastPeriod, MovementReason, MovementType


class StockLevelInput(BaseModel):
    """One size as supplied by a caller."""

    size: str = Field(..., description="Size label, unique within the item", examples=["M"])
    current_stock: int = Field(default=0, description="Opening / target stock on hand")
    min_stock: int = Field(default=0, description="Low-stock threshold")
    max_stock: int = Field(default=0, description="Target ceiling used for reorder quantities")
    reorder_point: int = Field(default=0, description="Reorder threshold")
    cost: float = Field(default=0.0, description="Unit cost")


class CreateInventoryItemRequest(BaseModel):
    """Request to start tracking stock for a catalog product.

    Product name and type fall back to the product catalog when omitted.
    """

    product_id: str = Field(..., description="Catalog product identifier")
    product_name: str | None = Field(default=None, description="Display name")
    product_type: str | None = Field(
        default=None,
        description="Product category, used in the generated SKU",
        examples=["tshirt", "hoodie"],
    )
    supplier: str = Field(..., description="Supplier name")
    location: str = Field(..., description="Storage location", examples=["Warehouse A"])
    stock_levels: list[StockLevelInput] = Field(..., description="Per-size levels")
    notes: str | None = Field(default=None, description="Free-form notes")


class UpdateInventoryItemRequest(BaseModel):
    """Partial update. Fields left as None are unchanged."""

    supplier: str | None = None
    location: str | None = None
    notes: str | None = None
    stock_levels: list[StockLevelInput] | None = Field(
        default=None,
        description="Full replacement of the size list",
    )


class StockAdjustmentInput(BaseModel):
    """One signed delta against a size."""

    size: str
    delta_quantity: int = Field(..., description="Signed change, non-zero")
    reason: MovementReason = MovementReason.ADJUSTMENT
    unit_cost: float | None = None
    notes: str | None = None


class AdjustStockRequest(BaseModel):
    """Administrative adjustment of one or more sizes."""

    adjustments: list[StockAdjustmentInput] = Field(..., description="Entries to apply")


class ProcessMovementRequest(BaseModel):
    """A single business movement against a product size."""

    product_id: str
    size: str
    quantity: int = Field(..., description="Units moved, positive")
    movement_type: MovementType
    reason: MovementReason
    reference: str | None = Field(default=None, description="Order or purchase id")
    unit_cost: float | None = None
    notes: str | None = None


class ForecastRequest(BaseModel):
    """Request to regenerate a forecast."""

    product_id: str
    period: ForecastPeriod = ForecastPeriod.MONTHLY
