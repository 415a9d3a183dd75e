"""Inventory management endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import get_actor, get_inventory_service
from stockledger.application import InventoryService
from stockledger.application.dto import (
    AdjustStockRequest,
    CreateInventoryItemRequest,
    ErrorResponse,
    ForecastRequest,
    InventoryItemResponse,
    InventoryListResponse,
    MovementListResponse,
    ProcessMovementRequest,
    StockChangeResponse,
    UpdateInventoryItemRequest,
)
from stockledger.core.entities import (
    Actor,
    ForecastPeriod,
    InventoryFilters,
    InventoryStats,
    ItemStatus,
    SalesVelocity,
    StockAlert,
    StockForecast,
)
from stockledger.core.services import StockChange

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

_NOT_FOUND = {404: {"model": ErrorResponse}}
_WRITE_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _change_response(change: StockChange) -> StockChangeResponse:
    return StockChangeResponse(
        item=InventoryItemResponse.from_entity(change.item),
        movements=change.movements,
    )


@router.post(
    "/items",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
)
async def create_item(
    request: CreateInventoryItemRequest,
    actor: Actor = Depends(get_actor),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemResponse:
    """Start tracking stock for a product."""
    item = await service.create_item(request, actor)
    return InventoryItemResponse.from_entity(item)


@router.get("/items", response_model=InventoryListResponse)
async def list_items(
    status_filter: ItemStatus | None = Query(default=None, alias="status"),
    location: str | None = None,
    supplier: str | None = None,
    product_type: str | None = None,
    search: str | None = None,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryListResponse:
    """List inventory items with optional filters."""
    filters = InventoryFilters(
        status=status_filter,
        location=location,
        supplier=supplier,
        product_type=product_type,
        search=search,
    )
    items = await service.list_items(filters)
    return InventoryListResponse(
        items=[InventoryItemResponse.from_entity(item) for item in items],
        total=len(items),
    )


@router.get("/items/{item_id}", response_model=InventoryItemResponse, responses=_NOT_FOUND)
async def get_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemResponse:
    item = await service.get_item(item_id)
    return InventoryItemResponse.from_entity(item)


@router.patch("/items/{item_id}", response_model=InventoryItemResponse, responses=_WRITE_ERRORS)
async def update_item(
    item_id: str,
    request: UpdateInventoryItemRequest,
    actor: Actor = Depends(get_actor),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemResponse:
    """Partially update an item. Stock changes are written to the ledger."""
    item = await service.update_item(item_id, request, actor)
    return InventoryItemResponse.from_entity(item)


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_WRITE_ERRORS,
)
async def delete_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> None:
    """Stop tracking an item that holds no stock."""
    await service.delete_item(item_id)


@router.post(
    "/items/{item_id}/adjust",
    response_model=StockChangeResponse,
    responses=_WRITE_ERRORS,
)
async def adjust_stock(
    item_id: str,
    request: AdjustStockRequest,
    actor: Actor = Depends(get_actor),
    service: InventoryService = Depends(get_inventory_service),
) -> StockChangeResponse:
    """Apply administrative stock deltas (clamped at zero)."""
    change = await service.adjust_stock(item_id, request.adjustments, actor)
    return _change_response(change)


@router.post(
    "/movements",
    response_model=StockChangeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
)
async def process_movement(
    request: ProcessMovementRequest,
    actor: Actor = Depends(get_actor),
    service: InventoryService = Depends(get_inventory_service),
) -> StockChangeResponse:
    """Record a sale, purchase, return or waste movement."""
    change = await service.process_movement(
        product_id=request.product_id,
        size=request.size,
        quantity=request.quantity,
        movement_type=request.movement_type,
        reason=request.reason,
        actor=actor,
        reference=request.reference,
        unit_cost=request.unit_cost,
        notes=request.notes,
    )
    return _change_response(change)


@router.get("/movements", response_model=MovementListResponse)
async def list_movements(
    product_id: str | None = None,
    limit: int | None = None,
    service: InventoryService = Depends(get_inventory_service),
) -> MovementListResponse:
    """Movement history, newest first."""
    movements = await service.list_movements(product_id, limit=limit)
    return MovementListResponse(movements=movements, total=len(movements))


@router.get("/stats", response_model=InventoryStats)
async def get_stats(
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryStats:
    return await service.get_stats()


@router.get("/alerts", response_model=list[StockAlert])
async def list_alerts(
    unread_only: bool = False,
    service: InventoryService = Depends(get_inventory_service),
) -> list[StockAlert]:
    return await service.list_alerts(unread_only=unread_only)


@router.post(
    "/alerts/{alert_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
)
async def mark_alert_read(
    alert_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> None:
    await service.mark_alert_read(alert_id)


@router.post("/forecasts", response_model=StockForecast, responses=_WRITE_ERRORS)
async def generate_forecast(
    request: ForecastRequest,
    service: InventoryService = Depends(get_inventory_service),
) -> StockForecast:
    """Regenerate the forecast for a product and period."""
    return await service.generate_forecast(request.product_id, request.period)


@router.get("/forecasts", response_model=list[StockForecast])
async def list_forecasts(
    product_id: str | None = None,
    service: InventoryService = Depends(get_inventory_service),
) -> list[StockForecast]:
    return await service.list_forecasts(product_id)


@router.get("/velocity/{product_id}", response_model=SalesVelocity, responses=_NOT_FOUND)
async def get_sales_velocity(
    product_id: str,
    period: ForecastPeriod = ForecastPeriod.MONTHLY,
    service: InventoryService = Depends(get_inventory_service),
) -> SalesVelocity:
    """Sales velocity for the latest window compared with the one before."""
    return await service.get_sales_velocity(product_id, period)
