"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase (``riderId``, ``totalAmount``); Python code
uses snake_case. Request schemas keep most fields optional so the
services can report missing input with their own messages; update
schemas forbid unknown fields.
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from delivery_app.models import ORDER_STATUSES, RIDER_STATUSES

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts snake_case too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# ENVELOPE
# =============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: str = ""
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    success: bool = False
    message: str
    detail: Optional[Any] = None


# =============================================================================
# ORDERS
# =============================================================================

class CustomerIn(CamelModel):
    name: Optional[str] = Field(None, examples=["Asha"])
    phone: Optional[str] = Field(None, examples=["9999999999"])
    email: Optional[str] = None
    address: Optional[str] = None


class OrderCreate(CamelModel):
    """Request schema for placing an order."""
    items: Optional[List[dict[str, Any]]] = Field(
        None, examples=[[{"name": "Thali", "qty": 1}]]
    )
    customer: Optional[CustomerIn] = None
    total_amount: Optional[Union[float, str]] = Field(None, examples=[150])
    payment_method: Optional[str] = Field(None, examples=["Cash", "UPI"])
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: Optional[str] = Field(None, examples=ORDER_STATUSES)


class RiderAssignment(CamelModel):
    rider_id: Optional[str] = None
    rider_name: Optional[str] = None


class CustomerOut(CamelModel):
    name: str
    phone: str
    email: str = ""
    address: str = ""


class OrderOut(CamelModel):
    id: str
    items: List[dict[str, Any]]
    customer: CustomerOut
    status: str
    rider_id: Optional[str] = None
    rider_name: Optional[str] = None
    total_amount: float
    payment_method: str
    notes: str
    created_at: datetime
    updated_at: datetime
    delivered_at: Optional[datetime] = None


class OrderList(CamelModel):
    orders: List[OrderOut]
    count: int
    statuses: List[str] = ORDER_STATUSES


class OrdersByStatus(CamelModel):
    status: str
    orders: List[OrderOut]
    count: int


class OrderStats(CamelModel):
    total: int
    placed: int
    in_progress: int
    delivered: int
    cancelled: int
    today_count: int
    today_revenue: float


# =============================================================================
# RIDERS
# =============================================================================

class RiderCreate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[str] = Field(None, examples=["Bike"])
    vehicle_number: Optional[str] = None


class RiderUpdate(CamelModel):
    """Profile fields a generic update may change; anything else is rejected."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    is_active: Optional[bool] = None


class RiderStatusUpdate(CamelModel):
    status: Optional[str] = Field(None, examples=RIDER_STATUSES)
    current_order_id: Optional[str] = None


class RiderOut(CamelModel):
    id: str
    name: str
    phone: str
    email: Optional[str] = ""
    vehicle_type: str
    vehicle_number: str
    status: str
    current_order_id: Optional[str] = None
    total_deliveries: int
    rating: float
    is_active: bool
    joined_at: datetime
    created_at: datetime
    updated_at: datetime


class RiderSummary(CamelModel):
    id: Optional[str] = None
    name: str
    phone: str
    vehicle_type: Optional[str] = None
    status: Optional[str] = None


class RiderList(CamelModel):
    riders: List[RiderOut]
    count: int
    statuses: List[str] = RIDER_STATUSES


class AvailableRiders(CamelModel):
    riders: List[RiderOut]
    count: int


class RiderStats(CamelModel):
    total: int
    available: int
    on_delivery: int
    offline: int
    total_deliveries: int
    avg_rating: float


# =============================================================================
# AUTH & USERS
# =============================================================================

class UserRegister(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = Field(None, examples=["9876543210"])
    password: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(CamelModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class UserOut(CamelModel):
    """Account without the password hash."""
    phone: str
    name: str
    email: Optional[str] = None
    role: str
    rider_id: Optional[str] = None
    is_active: bool
    is_verified: bool
    profile_image: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None


class UserStatusUpdate(CamelModel):
    is_active: Any = None


class AuthPayload(CamelModel):
    user: UserOut
    token: str


class UserList(CamelModel):
    users: List[UserOut]
    count: int


class UserStats(CamelModel):
    total: int
    active: int
    verified: int
    inactive: int
    recent_signups: int


class RiderRegister(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None


class RiderAuthPayload(CamelModel):
    rider: Union[RiderOut, RiderSummary]
    token: str


class FcmTokenUpdate(CamelModel):
    rider_id: Optional[str] = None
    fcm_token: Optional[str] = None


# =============================================================================
# HEALTH
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    push_service: str
    timestamp: datetime
