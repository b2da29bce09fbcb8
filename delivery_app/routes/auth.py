"""
Customer Authentication Endpoints
"""

from fastapi import APIRouter, Depends, status as http_status

from delivery_app.schemas import ApiResponse, AuthPayload, LoginRequest, UserOut, UserRegister
from delivery_app.routes.deps import get_identity_registry
from delivery_app.services.identity import IdentityRegistry

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: UserRegister,
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[AuthPayload]:
    user, token = await identities.register_user(
        name=payload.name,
        phone=payload.phone,
        password=payload.password,
        email=payload.email,
        role=payload.role,
    )
    return ApiResponse(
        message="User registered successfully",
        data=AuthPayload(user=UserOut.model_validate(user), token=token),
    )


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    payload: LoginRequest,
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> ApiResponse[AuthPayload]:
    user, token = await identities.login(payload.phone, payload.password)
    return ApiResponse(
        message="Login successful",
        data=AuthPayload(user=UserOut.model_validate(user), token=token),
    )
