"""Unit tests for domain exceptions."""

import pytest

from stockledger.core.exceptions import (
    AlertNotFoundError,
    ConflictError,
    DuplicateInventoryItemError,
    InsufficientStockError,
    InventoryItemNotFoundError,
    NotFoundError,
    OperationTimeoutError,
    PersistenceError,
    ProductNotFoundError,
    StockLedgerError,
    StockRemainingError,
    ValidationError,
)


class TestStockLedgerError:
    """Tests for the base exception."""

    def test_basic_initialization(self):
        error = StockLedgerError("Something broke")
        assert str(error) == "Something broke"
        assert error.code == "StockLedgerError"
        assert error.details == {}
        assert error.kind == "error"

    def test_to_dict(self):
        error = StockLedgerError("Broke", code="BROKE", details={"a": 1})
        assert error.to_dict() == {
            "error": "BROKE",
            "kind": "error",
            "message": "Broke",
            "details": {"a": 1},
        }


class TestErrorKinds:
    """Each family exposes a stable kind."""

    @pytest.mark.parametrize(
        ("error", "family", "kind"),
        [
            (InventoryItemNotFoundError("i1"), NotFoundError, "not_found"),
            (ProductNotFoundError("p1"), NotFoundError, "not_found"),
            (AlertNotFoundError("a1"), NotFoundError, "not_found"),
            (ValidationError("size", "bad"), ValidationError, "validation"),
            (DuplicateInventoryItemError("p1", "i1"), ConflictError, "conflict"),
            (StockRemainingError("i1", 3), ConflictError, "conflict"),
            (InsufficientStockError("p1", "M", 20, 5), StockLedgerError, "insufficient_stock"),
            (PersistenceError("write", "disk full"), StockLedgerError, "persistence"),
            (OperationTimeoutError("adjust_stock", 1.0), StockLedgerError, "timeout"),
        ],
    )
    def test_kind(self, error, family, kind):
        assert isinstance(error, family)
        assert error.kind == kind
        assert error.to_dict()["kind"] == kind


class TestSpecificErrors:
    """Payloads carried by specific errors."""

    def test_insufficient_stock_fields(self):
        error = InsufficientStockError("prod-1", "M", requested=20, available=5)
        assert error.available == 5
        assert error.requested == 20
        assert error.size == "M"
        assert "Available: 5" in error.message
        assert error.code == "INSUFFICIENT_STOCK"

    def test_validation_error_field(self):
        error = ValidationError("quantity", "Must be positive", -3)
        assert error.field == "quantity"
        assert error.details["value"] == "-3"

    def test_stock_remaining_names_size(self):
        error = StockRemainingError("item-1", 4, size="L")
        assert "size 'L'" in error.message
        assert error.details["size"] == "L"

    def test_timeout_details(self):
        error = OperationTimeoutError("process_movement", 0.5)
        assert error.details == {"operation": "process_movement", "timeout": 0.5}
