"""Inventory domain entities."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new entity identifier."""
    return uuid4().hex


class ItemStatus(str, Enum):
    """Derived availability status of an inventory item."""

    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class MovementType(str, Enum):
    """Direction of a stock movement."""

    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class MovementReason(str, Enum):
    """Business reason behind a stock movement."""

    PURCHASE = "purchase"
    SALE = "sale"
    RETURN = "return"
    WASTE = "waste"
    ADJUSTMENT = "adjustment"


class Actor(BaseModel):
    """User on whose behalf a movement is recorded."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    user_email: str


class StockLevel(BaseModel):
    """Per-size stock record embedded in an inventory item."""

    size: str
    current_stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    max_stock: int = Field(default=0, ge=0)
    reorder_point: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0)  # unit cost, currency-less
    last_restocked: datetime | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> "StockLevel":
        if self.min_stock > self.max_stock:
            raise ValueError("min_stock must not exceed max_stock")
        return self

    @property
    def value(self) -> float:
        """Stock value of this size = current_stock * cost."""
        return self.current_stock * self.cost


class InventoryItem(BaseModel):
    """Stock record for one catalog product, split by size."""

    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str
    product_type: str
    sku: str = ""
    supplier: str
    location: str
    stock_levels: list[StockLevel] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def total_stock(self) -> int:
        """Sum of current stock across all sizes."""
        return sum(level.current_stock for level in self.stock_levels)

    @property
    def total_value(self) -> float:
        """Sum of current_stock * cost across all sizes."""
        return sum(level.value for level in self.stock_levels)

    @property
    def status(self) -> ItemStatus:
        """Strictest status that applies to any level."""
        if any(level.current_stock == 0 for level in self.stock_levels):
            return ItemStatus.OUT_OF_STOCK
        if any(level.current_stock <= level.min_stock for level in self.stock_levels):
            return ItemStatus.LOW_STOCK
        return ItemStatus.IN_STOCK

    def get_level(self, size: str) -> StockLevel | None:
        """Return the stock level for a size, if present."""
        for level in self.stock_levels:
            if level.size == size:
                return level
        return None

    @property
    def sizes(self) -> list[str]:
        return [level.size for level in self.stock_levels]


class StockMovement(BaseModel):
    """Immutable ledger entry for one stock-changing event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str = ""
    product_type: str = ""
    size: str
    movement_type: MovementType
    reason: MovementReason
    quantity: int = Field(gt=0)  # always positive
    unit_cost: float | None = None
    reference: str | None = None  # e.g. order id, purchase id
    actor: Actor
    location: str = ""
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def signed_quantity(self) -> int:
        """Quantity with the sign of its effect on stock."""
        if self.movement_type == MovementType.OUT:
            return -self.quantity
        return self.quantity


class InventoryFilters(BaseModel):
    """Optional filters for listing inventory items."""

    status: ItemStatus | None = None
    location: str | None = None
    supplier: str | None = None
    product_type: str | None = None
    search: str | None = None

    def matches(self, item: InventoryItem) -> bool:
        """Check whether an item passes every filter that is set."""
        if self.status is not None and item.status != self.status:
            return False
        if self.location is not None and item.location != self.location:
            return False
        if self.supplier is not None and item.supplier != self.supplier:
            return False
        if self.product_type is not None and item.product_type != self.product_type:
            return False
        if self.search:
            term = self.search.lower()
            haystack = (item.product_name, item.sku, item.supplier)
            if not any(term in field.lower() for field in haystack):
                return False
        return True


class InventoryStats(BaseModel):
    """Aggregate figures across all inventory items."""

    total_items: int = 0
    total_value: float = 0.0
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    alerts_count: int = 0
    average_stock_level: float = 0.0


class StockAdjustment(BaseModel):
    """One administrative delta against a single size."""

    size: str
    delta_quantity: int
    reason: MovementReason = MovementReason.ADJUSTMENT
    unit_cost: float | None = None
    notes: str | None = None
