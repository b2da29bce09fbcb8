"""
Rider Authentication Endpoints

Registration writes credentials and profile together; the device-token
endpoint accepts only a rider's own identity assertion.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status as http_status

from delivery_app.errors import PermissionDeniedError
from delivery_app.models import UserRole
from delivery_app.schemas import (
    ApiResponse,
    FcmTokenUpdate,
    LoginRequest,
    RiderAuthPayload,
    RiderOut,
    RiderRegister,
    RiderSummary,
)
from delivery_app.routes.deps import get_current_identity, get_rider_accounts, get_rider_directory
from delivery_app.services.rider_accounts import RiderAccounts
from delivery_app.services.riders import RiderDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rider/auth", tags=["Rider Auth"])


@router.post(
    "/register",
    response_model=ApiResponse[RiderAuthPayload],
    status_code=http_status.HTTP_201_CREATED,
)
async def register_rider(
    payload: RiderRegister,
    accounts: RiderAccounts = Depends(get_rider_accounts),
) -> ApiResponse[RiderAuthPayload]:
    rider, token = await accounts.register_rider(
        name=payload.name,
        phone=payload.phone,
        password=payload.password,
        vehicle_type=payload.vehicle_type,
        vehicle_number=payload.vehicle_number,
        email=payload.email,
    )
    return ApiResponse(
        message="Rider registered successfully",
        data=RiderAuthPayload(rider=RiderOut.model_validate(rider), token=token),
    )


@router.post("/login", response_model=ApiResponse[RiderAuthPayload])
async def login_rider(
    payload: LoginRequest,
    accounts: RiderAccounts = Depends(get_rider_accounts),
) -> ApiResponse[RiderAuthPayload]:
    """Log a rider in; falls back to the credential fields if the profile is missing."""
    user, profile, token = await accounts.login_rider(payload.phone, payload.password)
    if profile is not None:
        rider = RiderOut.model_validate(profile)
    else:
        rider = RiderSummary(id=user.rider_id, name=user.name, phone=user.phone)
    return ApiResponse(
        message="Login successful",
        data=RiderAuthPayload(rider=rider, token=token),
    )


@router.post("/fcm-token", response_model=ApiResponse[RiderOut])
async def update_fcm_token(
    payload: FcmTokenUpdate,
    claims: dict[str, Any] = Depends(get_current_identity),
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    if claims.get("role") != UserRole.RIDER.value:
        logger.warning(f"FCM token update refused for non-rider {claims.get('phone')}")
        raise PermissionDeniedError("Rider access required")
    if payload.rider_id and claims.get("riderId") != payload.rider_id:
        logger.warning(
            f"Rider {claims.get('riderId')} tried to set the FCM token of {payload.rider_id}"
        )
        raise PermissionDeniedError("Cannot update another rider's token")

    rider = await riders.update_push_token(payload.rider_id, payload.fcm_token)
    return ApiResponse(message="FCM token updated", data=RiderOut.model_validate(rider))
