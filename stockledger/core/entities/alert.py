"""Stock alert entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import new_id, utc_now


class AlertType(str, Enum):
    """Threshold that was breached."""

    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    REORDER_POINT = "reorder_point"


class AlertSeverity(str, Enum):
    """Urgency of an alert."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class StockAlert(BaseModel):
    """Threshold breach detected on one stock level."""

    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str = ""
    size: str
    alert_type: AlertType
    severity: AlertSeverity
    current_stock: int
    threshold: int
    message: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def dedupe_key(self) -> tuple[str, str, AlertType]:
        return (self.product_id, self.size, self.alert_type)
