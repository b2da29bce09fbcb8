"""
Order Ledger

Creates orders, moves them through their status workflow and answers
queries over the orders collection.

Status workflow:
    placed -> inProgress (rider assignment) -> delivered | cancelled

Status updates are not restricted to forward moves; any valid status
may follow any other (delivered -> placed is accepted). Reaching
``delivered`` stamps ``delivered_at``.
"""

import logging
import math
from typing import Any, Optional

from delivery_app.database import RecordStore, utcnow
from delivery_app.errors import NotFoundError, ValidationError
from delivery_app.models import ORDER_STATUSES, Order, OrderStatus, generate_id

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "Cash"
MAX_SCAN_LIMIT = 1000


def parse_amount(value: Any) -> float:
    """Numeric parse of a total amount; must be a positive finite number."""
    if value is None or isinstance(value, bool):
        raise ValidationError("Items, customer info, and total amount are required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Total amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Total amount must be greater than 0")
    return amount


def validate_order_status(status: Optional[str]) -> str:
    if status not in ORDER_STATUSES:
        raise ValidationError(
            "Invalid status. Valid statuses: " + ", ".join(ORDER_STATUSES)
        )
    return status


class OrderLedger:
    """Order records and their status transitions."""

    def __init__(self, store: RecordStore, default_limit: int = 100):
        self.store = store
        self.default_limit = default_limit

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def create_order(
        self,
        items: Optional[list[Any]],
        customer: Optional[dict[str, Any]],
        total_amount: Any,
        payment_method: Optional[str] = None,
        delivery_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Place a new order.

        The customer details are copied into the order; later changes to
        the customer's account do not touch it.

        Raises:
            ValidationError: Items empty, customer name/phone missing, or
                total amount not a positive number
        """
        if not items or not isinstance(items, list) or not customer:
            raise ValidationError("Items, customer info, and total amount are required")

        if not isinstance(customer, dict) or not customer.get("name") or not customer.get("phone"):
            raise ValidationError("Customer name and phone are required")

        amount = parse_amount(total_amount)
        now = utcnow()

        order = Order(
            id=generate_id("ORD"),
            items=list(items),
            customer={
                "name": customer["name"],
                "phone": customer["phone"],
                "email": customer.get("email") or "",
                "address": customer.get("address") or delivery_address or "",
            },
            status=OrderStatus.PLACED.value,
            rider_id=None,
            rider_name=None,
            total_amount=amount,
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
            notes=notes or "",
            created_at=now,
            updated_at=now,
            delivered_at=None,
        )

        await self.store.put(order)
        logger.info(f"Order {order.id} placed for {order.customer['name']} ({amount:.2f})")
        return order

    async def update_status(self, order_id: str, status: Optional[str]) -> Order:
        """
        Move an order to a new status.

        Raises:
            ValidationError: Status is not one of the four order statuses
            NotFoundError: Order does not exist
        """
        validate_order_status(status)

        async with self.store.transaction() as tx:
            existing = await tx.get(Order, order_id)
            if existing is None:
                raise NotFoundError("Order not found")

            now = utcnow()
            changes: dict[str, Any] = {"status": status, "updated_at": now}
            if status == OrderStatus.DELIVERED.value:
                changes["delivered_at"] = now

            previous = existing.status
            order = await tx.update(Order, order_id, changes)

        logger.info(f"Order {order_id} status {previous} -> {status}")
        return order

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_orders(
        self,
        status: Optional[str] = None,
        phone: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Order]:
        """
        Orders newest first.

        An unrecognised status filter is ignored rather than rejected.
        """
        criteria = []
        if status and status in ORDER_STATUSES:
            criteria.append(Order.status == status)

        orders = await self.store.scan(Order, *criteria, order_by=Order.created_at.desc())

        # Customer is a JSON snapshot; filter it client-side
        if phone:
            orders = [o for o in orders if (o.customer or {}).get("phone") == phone]

        limit = min(limit or self.default_limit, MAX_SCAN_LIMIT)
        return orders[:limit]

    async def get_orders_by_status(self, status: Optional[str]) -> list[Order]:
        validate_order_status(status)
        return await self.store.scan(
            Order, Order.status == status, order_by=Order.created_at.desc()
        )

    async def get_order(self, order_id: str) -> Order:
        order = await self.store.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def get_stats(self) -> dict[str, Any]:
        """Counts per status, today's order count and today's delivered revenue."""
        orders = await self.store.scan(Order)
        today = utcnow().date()
        today_orders = [o for o in orders if o.created_at and o.created_at.date() == today]

        def count(status: OrderStatus) -> int:
            return sum(1 for o in orders if o.status == status.value)

        return {
            "total": len(orders),
            "placed": count(OrderStatus.PLACED),
            "in_progress": count(OrderStatus.IN_PROGRESS),
            "delivered": count(OrderStatus.DELIVERED),
            "cancelled": count(OrderStatus.CANCELLED),
            "today_count": len(today_orders),
            "today_revenue": round(
                sum(o.total_amount or 0 for o in today_orders if o.status == OrderStatus.DELIVERED.value),
                2,
            ),
        }
