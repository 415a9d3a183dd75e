"""Core domain layer: entities, ports and services."""
