"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from gobs.gamification.engine import UserStats


class UserStatsResponse(BaseModel):
    xp: int
    level: int
    rank: str
    xp_for_next_level: int
    progress_to_next_level: int

    @classmethod
    def from_stats(cls, stats: UserStats) -> UserStatsResponse:
        return cls(
            xp=stats.xp,
            level=stats.level,
            rank=stats.rank.value,
            xp_for_next_level=stats.xp_for_next_level,
            progress_to_next_level=stats.progress_to_next_level,
        )
