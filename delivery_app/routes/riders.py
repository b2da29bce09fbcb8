"""
Rider API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status as http_status

from delivery_app.schemas import (
    ApiResponse,
    AvailableRiders,
    RiderCreate,
    RiderList,
    RiderOut,
    RiderStats,
    RiderStatusUpdate,
    RiderUpdate,
)
from delivery_app.routes.deps import get_rider_directory
from delivery_app.services.riders import RiderDirectory

router = APIRouter(prefix="/api/riders", tags=["Riders"])


@router.get("/stats", response_model=ApiResponse[RiderStats])
async def get_rider_stats(
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderStats]:
    stats = await riders.get_stats()
    return ApiResponse(message="Rider stats fetched successfully", data=RiderStats(**stats))


@router.get("/available", response_model=ApiResponse[AvailableRiders])
async def get_available_riders(
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[AvailableRiders]:
    available = await riders.get_available_riders()
    return ApiResponse(
        message="Available riders fetched successfully",
        data=AvailableRiders(
            riders=[RiderOut.model_validate(r) for r in available],
            count=len(available),
        ),
    )


@router.get("", response_model=ApiResponse[RiderList])
async def list_riders(
    status: Optional[str] = Query(None),
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderList]:
    """Active riders, newest first."""
    found = await riders.list_riders(status)
    return ApiResponse(
        message="Riders fetched successfully",
        data=RiderList(riders=[RiderOut.model_validate(r) for r in found], count=len(found)),
    )


@router.get("/{rider_id}", response_model=ApiResponse[RiderOut])
async def get_rider(
    rider_id: str,
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    rider = await riders.get_rider(rider_id)
    return ApiResponse(message="Rider fetched successfully", data=RiderOut.model_validate(rider))


@router.post("", response_model=ApiResponse[RiderOut], status_code=http_status.HTTP_201_CREATED)
async def create_rider(
    payload: RiderCreate,
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    rider = await riders.create_rider(
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        vehicle_type=payload.vehicle_type,
        vehicle_number=payload.vehicle_number,
    )
    return ApiResponse(message="Rider created successfully", data=RiderOut.model_validate(rider))


@router.put("/{rider_id}", response_model=ApiResponse[RiderOut])
async def update_rider(
    rider_id: str,
    payload: RiderUpdate,
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    """Update profile fields. Status and counters are not editable here."""
    rider = await riders.update_rider(rider_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(message="Rider updated successfully", data=RiderOut.model_validate(rider))


@router.patch("/{rider_id}/status", response_model=ApiResponse[RiderOut])
async def update_rider_status(
    rider_id: str,
    payload: RiderStatusUpdate,
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    rider = await riders.update_status(rider_id, payload.status, payload.current_order_id)
    return ApiResponse(
        message=f"Rider status updated to {payload.status}",
        data=RiderOut.model_validate(rider),
    )


@router.delete("/{rider_id}", response_model=ApiResponse[RiderOut])
async def delete_rider(
    rider_id: str,
    riders: RiderDirectory = Depends(get_rider_directory),
) -> ApiResponse[RiderOut]:
    rider = await riders.delete_rider(rider_id)
    return ApiResponse(message="Rider deleted successfully", data=RiderOut.model_validate(rider))
