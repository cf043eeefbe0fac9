"""Pydantic response models for quest endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from gobs.quests.engine import ClaimResult, QuestProgress, QuestWithProgress


class QuestRequirement(BaseModel):
    type: str
    value: float


class QuestProgressResponse(BaseModel):
    progress: float
    completed: bool
    claimed: bool
    completed_at: datetime | None = None
    claimed_at: datetime | None = None

    @classmethod
    def from_progress(cls, progress: QuestProgress) -> QuestProgressResponse:
        return cls(
            progress=progress.progress,
            completed=progress.completed,
            claimed=progress.claimed,
            completed_at=progress.completed_at,
            claimed_at=progress.claimed_at,
        )


class QuestResponse(BaseModel):
    id: str
    title: str
    description: str
    requirement: QuestRequirement
    reward_xp: int
    user_progress: QuestProgressResponse

    @classmethod
    def from_quest(cls, item: QuestWithProgress) -> QuestResponse:
        return cls(
            id=item.quest.id,
            title=item.quest.title,
            description=item.quest.description,
            requirement=QuestRequirement(
                type=item.quest.requirement_type.value,
                value=item.quest.requirement_value,
            ),
            reward_xp=item.quest.reward_xp,
            user_progress=QuestProgressResponse.from_progress(item.user_progress),
        )


class QuestListResponse(BaseModel):
    quests: list[QuestResponse]


class ClaimResponse(BaseModel):
    quest_id: str
    xp_gained: int
    leveled_up: bool
    new_level: int

    @classmethod
    def from_result(cls, result: ClaimResult) -> ClaimResponse:
        return cls(
            quest_id=result.quest_id,
            xp_gained=result.xp_gained,
            leveled_up=result.leveled_up,
            new_level=result.new_level,
        )
