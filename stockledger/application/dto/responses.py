"""Response DTOs for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.entities import (
    InventoryItem,
    ItemStatus,
    StockMovement,
    utc_now,
)


class StockLevelResponse(BaseModel):
    """Stock level with its derived value."""

    size: str
    current_stock: int
    min_stock: int
    max_stock: int
    reorder_point: int
    cost: float
    last_restocked: datetime | None = None
    value: float = Field(..., description="current_stock * cost")


class InventoryItemResponse(BaseModel):
    """Inventory item with derived totals and status."""

    id: str
    product_id: str
    product_name: str
    product_type: str
    sku: str
    supplier: str
    location: str
    stock_levels: list[StockLevelResponse]
    total_stock: int = Field(..., description="Sum of current stock across sizes")
    total_value: float = Field(..., description="Sum of stock value across sizes")
    status: ItemStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, item: InventoryItem) -> "InventoryItemResponse":
        return cls(
            **item.model_dump(exclude={"stock_levels"}),
            stock_levels=[
                StockLevelResponse(**level.model_dump(), value=level.value)
                for level in item.stock_levels
            ],
            total_stock=item.total_stock,
            total_value=item.total_value,
            status=item.status,
        )


class InventoryListResponse(BaseModel):
    """List of inventory items."""

    items: list[InventoryItemResponse]
    total: int


class StockChangeResponse(BaseModel):
    """Item state after a stock change plus the movements written."""

    item: InventoryItemResponse
    movements: list[StockMovement] = Field(default_factory=list)


class MovementListResponse(BaseModel):
    """Movements, newest first."""

    movements: list[StockMovement]
    total: int


class HealthResponse(BaseModel):
    """Service health."""

    status: str = "healthy"
    app_name: str
    version: str
    storage_backend: str
    uptime_seconds: float = 0.0


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - kind: error family (not_found, validation, conflict, ...)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    kind: str = Field(..., description="Error family")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict = Field(default_factory=dict, description="Structured context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=utc_now)
