"""Request/response schemas for account endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from gobs.accounts.service import Profile


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class ProfileResponse(BaseModel):
    id: int
    username: str
    email: str
    balance: float
    total_trades: int
    xp: int
    level: int
    rank: str
    xp_for_next_level: int
    progress_to_next_level: int
    created_at: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> ProfileResponse:
        return cls(
            id=profile.id,
            username=profile.username,
            email=profile.email,
            balance=profile.balance,
            total_trades=profile.total_trades,
            xp=profile.stats.xp,
            level=profile.stats.level,
            rank=profile.stats.rank.value,
            xp_for_next_level=profile.stats.xp_for_next_level,
            progress_to_next_level=profile.stats.progress_to_next_level,
            created_at=profile.created_at,
        )
