"""
Dependency injection for FastAPI.

The facade lives on ``app.state``; tests replace it through
``app.dependency_overrides``.
"""

from fastapi import Header, Request

from stockledger.application import InventoryService
from stockledger.core.entities import Actor
from stockledger.core.exceptions import ValidationError


def get_inventory_service(request: Request) -> InventoryService:
    """Return the facade built during application startup."""
    return request.app.state.inventory_service


def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Actor:
    """Acting user taken from the X-User-Id / X-User-Email headers."""
    if not x_user_id or not x_user_id.strip():
        raise ValidationError("X-User-Id", "Header is required for stock changes")
    return Actor(user_id=x_user_id.strip(), user_email=(x_user_email or "").strip())
