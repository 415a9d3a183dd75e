"""
Domain exceptions for the StockLedger engine.

Every error carries a stable machine-readable ``kind`` (shared by a whole
family of errors), a specific ``code`` and a human-readable message.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all StockLedger errors."""

    kind: str = "error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


# Not found
class NotFoundError(StockLedgerError):
    """Referenced item, product or alert does not exist."""

    kind = "not_found"


class InventoryItemNotFoundError(NotFoundError):
    """Inventory item not found."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Inventory item not found: {item_id}",
            code="INVENTORY_ITEM_NOT_FOUND",
            details={"item_id": item_id},
        )


class ProductNotFoundError(NotFoundError):
    """No inventory (or catalog entry) exists for the product."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Inventory not found for product: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class AlertNotFoundError(NotFoundError):
    """Stock alert not found."""

    def __init__(self, alert_id: str):
        super().__init__(
            f"Stock alert not found: {alert_id}",
            code="ALERT_NOT_FOUND",
            details={"alert_id": alert_id},
        )


# Validation
class ValidationError(StockLedgerError):
    """Input validation failed."""

    kind = "validation"

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )
        self.field = field


# Conflicts
class ConflictError(StockLedgerError):
    """Operation conflicts with the current state."""

    kind = "conflict"


class DuplicateInventoryItemError(ConflictError):
    """An inventory item already exists for the product."""

    def __init__(self, product_id: str, existing_id: str):
        super().__init__(
            f"Inventory already exists for product: {product_id}",
            code="DUPLICATE_INVENTORY_ITEM",
            details={"product_id": product_id, "existing_id": existing_id},
        )


class StockRemainingError(ConflictError):
    """Item cannot be removed while it still holds stock."""

    def __init__(self, item_id: str, total_stock: int, size: str | None = None):
        target = f"size '{size}' of item {item_id}" if size else f"item {item_id}"
        super().__init__(
            f"Cannot remove {target} with remaining stock ({total_stock}). "
            "Adjust stock to zero first.",
            code="STOCK_REMAINING",
            details={"item_id": item_id, "total_stock": total_stock, "size": size},
        )


class InsufficientStockError(StockLedgerError):
    """Outbound movement exceeds the available stock."""

    kind = "insufficient_stock"

    def __init__(self, product_id: str, size: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_id} ({size}). "
            f"Available: {available}, Required: {requested}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "size": size,
                "requested": requested,
                "available": available,
            },
        )
        self.size = size
        self.requested = requested
        self.available = available


# Storage
class PersistenceError(StockLedgerError):
    """Underlying storage operation failed."""

    kind = "persistence"

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Storage error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


class OperationTimeoutError(StockLedgerError):
    """Operation did not complete within its deadline."""

    kind = "timeout"

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"{operation} timed out after {timeout} seconds",
            code="OPERATION_TIMEOUT",
            details={"operation": operation, "timeout": timeout},
        )
