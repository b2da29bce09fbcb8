"""
Order API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status as http_status

from delivery_app.schemas import (
    ApiResponse,
    ErrorResponse,
    OrderCreate,
    OrderList,
    OrderOut,
    OrdersByStatus,
    OrderStats,
    OrderStatusUpdate,
    RiderAssignment,
)
from delivery_app.routes.deps import get_coordinator, get_order_ledger
from delivery_app.services.assignment import AssignmentCoordinator
from delivery_app.services.orders import OrderLedger

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("/stats", response_model=ApiResponse[OrderStats])
async def get_order_stats(
    ledger: OrderLedger = Depends(get_order_ledger),
) -> ApiResponse[OrderStats]:
    """Counts per status plus today's orders and delivered revenue."""
    stats = await ledger.get_stats()
    return ApiResponse(message="Order stats fetched successfully", data=OrderStats(**stats))


@router.get("", response_model=ApiResponse[OrderList])
async def list_orders(
    status: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> ApiResponse[OrderList]:
    """All orders, newest first, optionally filtered by status and customer phone."""
    orders = await ledger.list_orders(status=status, phone=phone, limit=limit)
    return ApiResponse(
        message="Orders fetched successfully",
        data=OrderList(
            orders=[OrderOut.model_validate(o) for o in orders],
            count=len(orders),
        ),
    )


@router.get("/status/{status}", response_model=ApiResponse[OrdersByStatus])
async def get_orders_by_status(
    status: str,
    ledger: OrderLedger = Depends(get_order_ledger),
) -> ApiResponse[OrdersByStatus]:
    orders = await ledger.get_orders_by_status(status)
    return ApiResponse(
        message=f"{status} orders fetched successfully",
        data=OrdersByStatus(
            status=status,
            orders=[OrderOut.model_validate(o) for o in orders],
            count=len(orders),
        ),
    )


@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
async def get_order(
    order_id: str,
    ledger: OrderLedger = Depends(get_order_ledger),
) -> ApiResponse[OrderOut]:
    order = await ledger.get_order(order_id)
    return ApiResponse(message="Order fetched successfully", data=OrderOut.model_validate(order))


@router.post(
    "",
    response_model=ApiResponse[OrderOut],
    status_code=http_status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_order(
    payload: OrderCreate,
    ledger: OrderLedger = Depends(get_order_ledger),
) -> ApiResponse[OrderOut]:
    """Place a new order in the ``placed`` state."""
    order = await ledger.create_order(
        items=payload.items,
        customer=payload.customer.model_dump() if payload.customer else None,
        total_amount=payload.total_amount,
        payment_method=payload.payment_method,
        delivery_address=payload.delivery_address,
        notes=payload.notes,
    )
    return ApiResponse(message="Order created successfully", data=OrderOut.model_validate(order))


@router.patch("/{order_id}/status", response_model=ApiResponse[OrderOut])
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
) -> ApiResponse[OrderOut]:
    order = await coordinator.update_order_status(order_id, payload.status)
    return ApiResponse(
        message=f"Order status updated to {payload.status}",
        data=OrderOut.model_validate(order),
    )


@router.patch(
    "/{order_id}/assign",
    response_model=ApiResponse[OrderOut],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def assign_rider(
    order_id: str,
    payload: RiderAssignment,
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
) -> ApiResponse[OrderOut]:
    """Assign an available rider to a placed order."""
    order = await coordinator.assign_rider(order_id, payload.rider_id, payload.rider_name)
    return ApiResponse(message="Rider assigned successfully", data=OrderOut.model_validate(order))
