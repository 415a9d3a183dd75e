"""HTTP API for the inventory engine."""
