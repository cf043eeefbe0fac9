"""Account API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gobs.accounts.schemas import ProfileResponse, RegisterRequest
from gobs.dependencies import Services, get_current_user_id, get_services

router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


@router.post("", response_model=ProfileResponse, status_code=201)
async def register(
    body: RegisterRequest,
    services: Services = Depends(get_services),
) -> ProfileResponse:
    profile = await services.accounts.register(body.username, body.email, body.password)
    return ProfileResponse.from_profile(profile)


@router.get("/me", response_model=ProfileResponse)
async def me(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ProfileResponse:
    return ProfileResponse.from_profile(await services.accounts.get_profile(user_id))
