"""Data Transfer Objects for the facade and API layer.

Request DTOs: shape of incoming calls.
Response DTOs: serialized results with derived fields.
"""

from stockledger.application.dto.requests import (
    AdjustStockRequest,
    CreateInventoryItemRequest,
    ForecastRequest,
    ProcessMovementRequest,
    StockAdjustmentInput,
    StockLevelInput,
    UpdateInventoryItemRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    InventoryItemResponse,
    InventoryListResponse,
    MovementListResponse,
    StockChangeResponse,
    StockLevelResponse,
)

__all__ = [
    # Requests
    "AdjustStockRequest",
    "CreateInventoryItemRequest",
    "ForecastRequest",
    "ProcessMovementRequest",
    "StockAdjustmentInput",
    "StockLevelInput",
    "UpdateInventoryItemRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "InventoryItemResponse",
    "InventoryListResponse",
    "MovementListResponse",
    "StockChangeResponse",
    "StockLevelResponse",
]
