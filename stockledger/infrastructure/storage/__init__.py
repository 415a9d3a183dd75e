"""Storage backends: in-memory and SQLite."""
