"""Quest API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gobs.dependencies import Services, get_current_user_id, get_services
from gobs.quests.schemas import ClaimResponse, QuestListResponse, QuestResponse

router = APIRouter(prefix="/api/v1/quests", tags=["Quests"])


@router.get("", response_model=QuestListResponse)
async def list_quests(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> QuestListResponse:
    """All quests with the caller's progress."""
    quests = await services.quests.get_quests_with_progress(user_id)
    return QuestListResponse(quests=[QuestResponse.from_quest(q) for q in quests])


@router.get("/available", response_model=QuestListResponse)
async def list_available(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> QuestListResponse:
    """Completed quests whose reward can be claimed."""
    quests = await services.quests.get_available_quests(user_id)
    return QuestListResponse(quests=[QuestResponse.from_quest(q) for q in quests])


@router.get("/completed", response_model=QuestListResponse)
async def list_completed(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> QuestListResponse:
    quests = await services.quests.get_completed_quests(user_id)
    return QuestListResponse(quests=[QuestResponse.from_quest(q) for q in quests])


@router.post("/{quest_id}/claim", response_model=ClaimResponse)
async def claim(
    quest_id: str,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ClaimResponse:
    result = await services.quests.claim_quest_reward(user_id, quest_id)
    return ClaimResponse.from_result(result)
