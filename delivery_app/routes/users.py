"""
Customer Account Admin Endpoints
"""

from fastapi import APIRouter, Depends

from delivery_app.schemas import ApiResponse, UserList, UserOut, UserStats, UserStatusUpdate
from delivery_app.routes.deps import get_identity_registry
from delivery_app.services.identity import IdentityRegistry

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/stats", response_model=ApiResponse[UserStats])
async def get_user_stats(
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[UserStats]:
    stats = await identities.get_stats()
    return ApiResponse(message="User stats fetched successfully", data=UserStats(**stats))


@router.get("", response_model=ApiResponse[UserList])
async def list_users(
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[UserList]:
    users = await identities.list_users()
    return ApiResponse(
        message="Users fetched successfully",
        data=UserList(users=[UserOut.model_validate(u) for u in users], count=len(users)),
    )


@router.get("/{phone}", response_model=ApiResponse[UserOut])
async def get_user(
    phone: str,
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[UserOut]:
    user = await identities.get_user(phone)
    return ApiResponse(message="User fetched successfully", data=UserOut.model_validate(user))


@router.patch("/{phone}/status", response_model=ApiResponse[UserOut])
async def update_user_status(
    phone: str,
    payload: UserStatusUpdate,
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[UserOut]:
    user = await identities.set_active(phone, payload.is_active)
    state = "activated" if user.is_active else "deactivated"
    return ApiResponse(message=f"User {state} successfully", data=UserOut.model_validate(user))
