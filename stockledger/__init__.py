"""StockLedger: inventory ledger and demand forecasting engine."""

__version__ = "1.0.0"
