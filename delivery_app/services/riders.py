"""
Rider Directory

Rider profiles and the rider status cycle:

    offline <-> available -> on-delivery -> available | offline

Leaving ``on-delivery`` clears ``current_order_id`` and counts one
delivery. The counter is bumped by a conditional update on the stored
status, so a repeated or concurrent "leave" request cannot count the
same delivery twice.
"""

import logging
import math
from datetime import datetime
from typing import Any, Optional

from delivery_app.database import RecordStore, utcnow
from delivery_app.errors import ConditionFailedError, NotFoundError, ValidationError
from delivery_app.models import RIDER_STATUSES, Rider, RiderStatus, generate_id

logger = logging.getLogger(__name__)

DEFAULT_VEHICLE_TYPE = "Bike"
DEFAULT_RATING = 5.0

# Fields a generic profile update may touch. Status, counters and the
# push token each have their own operation.
MUTABLE_FIELDS = frozenset({
    "name",
    "phone",
    "email",
    "vehicle_type",
    "vehicle_number",
    "rating",
    "is_active",
})


def build_rider_profile(
    rider_id: str,
    name: str,
    phone: str,
    now: datetime,
    email: Optional[str] = None,
    vehicle_type: Optional[str] = None,
    vehicle_number: Optional[str] = None,
) -> Rider:
    """A fresh, offline rider profile with zero deliveries."""
    return Rider(
        id=rider_id,
        name=name,
        phone=phone,
        email=email or "",
        vehicle_type=vehicle_type or DEFAULT_VEHICLE_TYPE,
        vehicle_number=vehicle_number or "",
        status=RiderStatus.OFFLINE.value,
        current_order_id=None,
        total_deliveries=0,
        rating=DEFAULT_RATING,
        is_active=True,
        fcm_token=None,
        joined_at=now,
        created_at=now,
        updated_at=now,
    )


def validate_rider_status(status: Optional[str]) -> str:
    if status not in RIDER_STATUSES:
        raise ValidationError("Invalid status. Valid: " + ", ".join(RIDER_STATUSES))
    return status


def _validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - MUTABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    if not changes:
        raise ValidationError("No fields to update")

    for field, value in changes.items():
        if value is None and field != "email":
            raise ValidationError(f"{field} cannot be null")

    for field in ("name", "phone"):
        if field in changes and not changes[field]:
            raise ValidationError(f"{field} cannot be empty")

    if "rating" in changes:
        rating = changes["rating"]
        if isinstance(rating, bool) or not isinstance(rating, (int, float)) \
                or not math.isfinite(rating) or not 0 <= rating <= 5:
            raise ValidationError("Rating must be a number between 0 and 5")

    if "is_active" in changes and not isinstance(changes["is_active"], bool):
        raise ValidationError("isActive must be a boolean")

    return changes


class RiderDirectory:
    """Rider profile records."""

    def __init__(self, store: RecordStore):
        self.store = store

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def create_rider(
        self,
        name: Optional[str],
        phone: Optional[str],
        email: Optional[str] = None,
        vehicle_type: Optional[str] = None,
        vehicle_number: Optional[str] = None,
    ) -> Rider:
        """
        Add a rider profile directly (no login credentials).

        Raises:
            ValidationError: Name or phone missing
        """
        if not name or not phone:
            raise ValidationError("Name and phone are required")

        rider = build_rider_profile(
            generate_id("RDR"),
            name,
            phone,
            utcnow(),
            email=email,
            vehicle_type=vehicle_type,
            vehicle_number=vehicle_number,
        )
        await self.store.put(rider)
        logger.info(f"Rider {rider.id} created ({rider.name})")
        return rider

    async def update_rider(self, rider_id: str, changes: dict[str, Any]) -> Rider:
        """
        Update allow-listed profile fields.

        Raises:
            ValidationError: Unknown or invalid fields
            NotFoundError: Rider does not exist
        """
        changes = _validate_changes(dict(changes))
        rider = await self.store.update(Rider, rider_id, {**changes, "updated_at": utcnow()})
        logger.info(f"Rider {rider_id} updated: {', '.join(sorted(changes))}")
        return rider

    async def update_status(
        self,
        rider_id: str,
        status: Optional[str],
        current_order_id: Optional[str] = None,
    ) -> Rider:
        """
        Move a rider to a new status.

        - on-delivery with an order id records the order
        - available/offline from on-delivery clears the order and counts
          one delivery
        - anything else only changes the status

        Raises:
            ValidationError: Status is not one of the three rider statuses
            NotFoundError: Rider does not exist
        """
        validate_rider_status(status)

        async with self.store.transaction() as tx:
            existing = await tx.get(Rider, rider_id)
            if existing is None:
                raise NotFoundError("Rider not found")

            previous = existing.status
            changes: dict[str, Any] = {"status": status, "updated_at": utcnow()}

            if status == RiderStatus.ON_DELIVERY.value and current_order_id:
                changes["current_order_id"] = current_order_id

            ends_delivery = (
                status in (RiderStatus.AVAILABLE.value, RiderStatus.OFFLINE.value)
                and previous == RiderStatus.ON_DELIVERY.value
            )
            if ends_delivery:
                try:
                    rider = await tx.update(
                        Rider,
                        rider_id,
                        {
                            **changes,
                            "current_order_id": None,
                            "total_deliveries": Rider.total_deliveries + 1,
                        },
                        Rider.status == RiderStatus.ON_DELIVERY.value,
                    )
                    logger.info(
                        f"Rider {rider_id} finished delivery "
                        f"(total {rider.total_deliveries}), now {status}"
                    )
                    return rider
                except ConditionFailedError:
                    # Another request already closed this delivery
                    logger.info(f"Rider {rider_id} delivery already closed, not counting again")

            rider = await tx.update(Rider, rider_id, changes)

        logger.info(f"Rider {rider_id} status {previous} -> {status}")
        return rider

    async def update_push_token(self, rider_id: Optional[str], token: Optional[str]) -> Rider:
        """
        Store the rider's device token.

        Raises:
            ValidationError: Rider id or token missing
            NotFoundError: Rider does not exist
        """
        if not rider_id or not token:
            raise ValidationError(
                "Missing riderId or fcmToken",
                detail={"riderId": bool(rider_id), "fcmToken": bool(token)},
            )

        rider = await self.store.update(
            Rider, rider_id, {"fcm_token": token, "updated_at": utcnow()}
        )
        logger.info(f"FCM token updated for rider {rider_id}: {token[:20]}...")
        return rider

    async def delete_rider(self, rider_id: str) -> Rider:
        """Soft delete: the profile stays, flagged inactive."""
        rider = await self.store.update(
            Rider, rider_id, {"is_active": False, "updated_at": utcnow()}
        )
        logger.info(f"Rider {rider_id} deactivated")
        return rider

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_riders(self, status: Optional[str] = None) -> list[Rider]:
        """Active riders, optionally by status. Unknown statuses are ignored."""
        criteria = [Rider.is_active.is_(True)]
        if status and status in RIDER_STATUSES:
            criteria.append(Rider.status == status)
        return await self.store.scan(Rider, *criteria, order_by=Rider.created_at.desc())

    async def get_available_riders(self) -> list[Rider]:
        return await self.list_riders(RiderStatus.AVAILABLE.value)

    async def get_rider(self, rider_id: str) -> Rider:
        rider = await self.store.get(Rider, rider_id)
        if rider is None:
            raise NotFoundError("Rider not found")
        return rider

    async def get_stats(self) -> dict[str, Any]:
        riders = await self.list_riders()

        def count(status: RiderStatus) -> int:
            return sum(1 for r in riders if r.status == status.value)

        return {
            "total": len(riders),
            "available": count(RiderStatus.AVAILABLE),
            "on_delivery": count(RiderStatus.ON_DELIVERY),
            "offline": count(RiderStatus.OFFLINE),
            "total_deliveries": sum(r.total_deliveries or 0 for r in riders),
            "avg_rating": (
                round(sum(r.rating or 0 for r in riders) / len(riders), 1) if riders else 0
            ),
        }
