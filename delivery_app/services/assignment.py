"""
Assignment Coordinator

Couples the order ledger and the rider directory.

Assigning a rider is one transaction over both records: the rider goes
``available -> on-delivery`` holding the order, and the order goes
``placed -> inProgress`` naming the rider. Both writes are conditional
on those starting states, so two concurrent assignments cannot book the
same rider or the same order; the loser gets a ConflictError and
nothing it wrote is kept.

After a successful assignment or order status change the rider is sent
a push alert. Push problems are logged and never undo the change.
"""

import logging
from typing import Optional

from delivery_app.database import RecordStore, utcnow
from delivery_app.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from delivery_app.models import Order, OrderStatus, Rider, RiderStatus
from delivery_app.services.orders import OrderLedger
from delivery_app.services.push.dispatch import RiderNotifier

logger = logging.getLogger(__name__)

PLACEHOLDER_RIDER_NAME = "Assigned Rider"


class AssignmentCoordinator:
    """Order/rider workflow with rider notifications."""

    def __init__(self, store: RecordStore, ledger: OrderLedger, notifier: RiderNotifier):
        self.store = store
        self.ledger = ledger
        self.notifier = notifier

    async def assign_rider(
        self,
        order_id: str,
        rider_id: Optional[str],
        rider_name: Optional[str] = None,
    ) -> Order:
        """
        Bind a rider to a placed order.

        Raises:
            ValidationError: Rider id missing
            NotFoundError: Order or rider does not exist
            ConflictError: Order is not placed, or rider is inactive or
                not available (including losing a race for either)
        """
        if not rider_id:
            raise ValidationError("Rider ID is required")

        async with self.store.transaction() as tx:
            order = await tx.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")

            rider = await tx.get(Rider, rider_id)
            if rider is None:
                raise NotFoundError("Rider not found")

            if order.status != OrderStatus.PLACED.value:
                raise ConflictError(f"Order {order_id} is {order.status} and cannot be assigned")
            if not rider.is_active:
                raise ConflictError(f"Rider {rider_id} is inactive")
            if rider.status != RiderStatus.AVAILABLE.value:
                raise ConflictError(f"Rider {rider_id} is not available ({rider.status})")

            now = utcnow()
            name = rider_name or rider.name or PLACEHOLDER_RIDER_NAME

            try:
                await tx.update(
                    Rider,
                    rider_id,
                    {
                        "status": RiderStatus.ON_DELIVERY.value,
                        "current_order_id": order_id,
                        "updated_at": now,
                    },
                    Rider.status == RiderStatus.AVAILABLE.value,
                )
                order = await tx.update(
                    Order,
                    order_id,
                    {
                        "rider_id": rider_id,
                        "rider_name": name,
                        "status": OrderStatus.IN_PROGRESS.value,
                        "updated_at": now,
                    },
                    Order.status == OrderStatus.PLACED.value,
                )
            except ConditionFailedError as e:
                raise ConflictError(
                    f"Order {order_id} or rider {rider_id} changed during assignment"
                ) from e

        logger.info(f"Rider {rider_id} assigned to order {order_id}")

        customer = order.customer or {}
        await self.notifier.notify_rider(
            rider_id,
            "New order assigned",
            f"Order {order_id} for {customer.get('name', 'a customer')}"
            f" - {customer.get('address') or 'address on order'}",
            {"type": "order_assigned", "orderId": order_id},
        )
        return order

    async def update_order_status(self, order_id: str, status: Optional[str]) -> Order:
        """
        Change an order's status and alert its rider, if it has one.

        Raises:
            ValidationError: Invalid status
            NotFoundError: Order does not exist
        """
        order = await self.ledger.update_status(order_id, status)

        if order.rider_id:
            await self.notifier.notify_rider(
                order.rider_id,
                "Order update",
                f"Order {order_id} is now {status}",
                {"type": "order_status", "orderId": order_id, "status": status},
            )
        return order
