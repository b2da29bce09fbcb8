"""
SQLAlchemy Record Models

One model per store collection:
- users: credentials keyed by phone number
- riders: rider profiles keyed by a generated rider id
- orders: orders keyed by a generated order id

Status columns hold the enum *values* ("inProgress", "on-delivery"),
which are also what the API speaks.
"""

import enum
import time
import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Boolean, JSON

from delivery_app.database import Base, utcnow


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PLACED = "placed"
    IN_PROGRESS = "inProgress"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RiderStatus(str, enum.Enum):
    """Rider availability cycle."""
    AVAILABLE = "available"
    ON_DELIVERY = "on-delivery"
    OFFLINE = "offline"


class UserRole(str, enum.Enum):
    USER = "user"
    RIDER = "rider"


ORDER_STATUSES = [s.value for s in OrderStatus]
RIDER_STATUSES = [s.value for s in RiderStatus]


def generate_id(prefix: str) -> str:
    """
    Human-readable, collision-resistant record id.

    ``ORD1718000000000A1B2C3D4``: prefix, epoch millis, 8 hex chars of a UUID4.
    """
    return f"{prefix}{int(time.time() * 1000)}{uuid.uuid4().hex[:8].upper()}"


class User(Base):
    """
    Identity record - credentials for customers and riders.

    A rider identity always carries ``rider_id`` pointing at its profile.
    """
    __tablename__ = "users"

    phone = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    password_hash = Column(String(100), nullable=False)
    role = Column(String(10), nullable=False, default=UserRole.USER.value, index=True)
    rider_id = Column(String(40), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    profile_image = Column(String(500), nullable=True)
    address = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User {self.phone} - {self.role}>"


class Rider(Base):
    """
    Rider profile.

    ``current_order_id`` is set while the rider is on a delivery and
    cleared when the rider becomes available or goes offline.
    """
    __tablename__ = "riders"

    id = Column(String(40), primary_key=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    email = Column(String(255), nullable=True)

    vehicle_type = Column(String(50), nullable=False, default="Bike")
    vehicle_number = Column(String(50), nullable=False, default="")

    status = Column(String(20), nullable=False, default=RiderStatus.OFFLINE.value, index=True)
    current_order_id = Column(String(40), nullable=True)
    total_deliveries = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=5.0)
    is_active = Column(Boolean, nullable=False, default=True)
    fcm_token = Column(Text, nullable=True)

    joined_at = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Rider {self.id} - {self.name} - {self.status}>"


class Order(Base):
    """
    Customer order.

    ``customer`` is a snapshot copied at creation time. ``rider_id`` is a
    lookup reference only; riders and orders have independent lifecycles.
    """
    __tablename__ = "orders"

    id = Column(String(40), primary_key=True)
    items = Column(JSON, nullable=False)
    customer = Column(JSON, nullable=False)

    status = Column(String(20), nullable=False, default=OrderStatus.PLACED.value, index=True)
    rider_id = Column(String(40), nullable=True)
    rider_name = Column(String(100), nullable=True)

    total_amount = Column(Float, nullable=False)
    payment_method = Column(String(50), nullable=False, default="Cash")
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    delivered_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Order {self.id} - {self.status}>"
