"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gobs.dependencies import Services, get_current_user_id, get_services
from gobs.gamification.schemas import UserStatsResponse

router = APIRouter(prefix="/api/v1/gamification", tags=["Gamification"])


@router.get("/stats", response_model=UserStatsResponse)
async def get_stats(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> UserStatsResponse:
    """XP, level, rank and progress through the current level."""
    return UserStatsResponse.from_stats(await services.gamification.get_user_stats(user_id))
