"""Quest progress evaluation and reward claims.

Viewing quests is read-only: live progress is computed from the user's
counters and holdings on every call, except for quests already completed,
whose stored progress is returned as-is. Progress is persisted only when a
quest is claimed, and the claim, its progress entry and its XP grant commit
in one transaction under the user's lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog

from gobs.database import Database
from gobs.dates import as_utc, utcnow
from gobs.db.models import Portfolio, Quest, User, UserQuestProgress
from gobs.errors import BadRequestError, QuestNotFoundError, UserNotFoundError
from gobs.gamification.engine import QUEST_SOURCE, GamificationEngine, quest_reward_key
from gobs.locks import KeyedLock
from gobs.quests.types import QuestRequirementType

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuestInfo:
    id: str
    title: str
    description: str
    requirement_type: QuestRequirementType
    requirement_value: float
    reward_xp: int

    @classmethod
    def from_model(cls, quest: Quest) -> QuestInfo:
        return cls(
            id=quest.id,
            title=quest.title,
            description=quest.description,
            requirement_type=QuestRequirementType(quest.requirement_type),
            requirement_value=quest.requirement_value,
            reward_xp=quest.reward_xp,
        )


@dataclass(frozen=True)
class QuestProgress:
    quest_id: str
    progress: float
    completed: bool
    claimed: bool
    completed_at: datetime | None = None
    claimed_at: datetime | None = None

    @classmethod
    def from_model(cls, entry: UserQuestProgress) -> QuestProgress:
        return cls(
            quest_id=entry.quest_id,
            progress=entry.progress,
            completed=entry.completed,
            claimed=entry.claimed,
            completed_at=as_utc(entry.completed_at) if entry.completed_at else None,
            claimed_at=as_utc(entry.claimed_at) if entry.claimed_at else None,
        )


@dataclass(frozen=True)
class QuestWithProgress:
    quest: QuestInfo
    user_progress: QuestProgress


@dataclass(frozen=True)
class ClaimResult:
    quest_id: str
    xp_gained: int
    leveled_up: bool
    new_level: int


@dataclass(frozen=True)
class UserMetrics:
    total_trades: int
    portfolio_diversity: int
    net_worth: float

    @classmethod
    def collect(cls, user: User, portfolio: Portfolio | None) -> UserMetrics:
        holdings = portfolio.holdings if portfolio is not None else []
        return cls(
            total_trades=user.total_trades or 0,
            portfolio_diversity=len(holdings),
            # Cost basis, not market value: quests never depend on the price feed.
            net_worth=user.balance + sum(h.total_invested for h in holdings),
        )


def measure(requirement_type: QuestRequirementType, metrics: UserMetrics) -> float:
    if requirement_type is QuestRequirementType.TOTAL_TRADES:
        return float(metrics.total_trades)
    if requirement_type is QuestRequirementType.PORTFOLIO_DIVERSITY:
        return float(metrics.portfolio_diversity)
    if requirement_type is QuestRequirementType.NET_WORTH:
        return metrics.net_worth
    # PROFIT_PERCENTAGE is not tracked yet.
    return 0.0


class QuestEngine:
    def __init__(self, database: Database, gamification: GamificationEngine, locks: KeyedLock) -> None:
        self.database = database
        self.gamification = gamification
        self.locks = locks

    async def get_all_quests(self) -> list[QuestInfo]:
        async with self.database.unit_of_work() as uow:
            quests = await uow.quests.find_all()
        return [QuestInfo.from_model(q) for q in quests]

    async def get_quests_with_progress(self, user_id: int) -> list[QuestWithProgress]:
        async with self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id)
            if user is None:
                raise UserNotFoundError
            portfolio = await uow.portfolios.find_by_user_id(user_id)
            quests = await uow.quests.find_all()
            entries = {e.quest_id: e for e in await uow.users.get_quest_progress(user_id)}
            metrics = UserMetrics.collect(user, portfolio)

        results: list[QuestWithProgress] = []
        for quest in quests:
            info = QuestInfo.from_model(quest)
            entry = entries.get(quest.id)
            if entry is not None and entry.completed:
                # Frozen once completed, even if the underlying metric drops later.
                progress = QuestProgress.from_model(entry)
            else:
                current = measure(info.requirement_type, metrics)
                progress = QuestProgress(
                    quest_id=quest.id,
                    progress=current,
                    completed=current >= info.requirement_value,
                    claimed=False,
                    completed_at=as_utc(entry.completed_at) if entry and entry.completed_at else None,
                )
            results.append(QuestWithProgress(quest=info, user_progress=progress))
        return results

    async def get_completed_quests(self, user_id: int) -> list[QuestWithProgress]:
        """Quests whose reward has been claimed."""
        quests = await self.get_quests_with_progress(user_id)
        return [q for q in quests if q.user_progress.claimed]

    async def get_available_quests(self, user_id: int) -> list[QuestWithProgress]:
        """Quests that are complete but not yet claimed."""
        quests = await self.get_quests_with_progress(user_id)
        return [q for q in quests if q.user_progress.completed and not q.user_progress.claimed]

    async def get_user_quest_progress(self, user_id: int) -> list[QuestProgress]:
        async with self.database.unit_of_work() as uow:
            if await uow.users.get(user_id) is None:
                raise UserNotFoundError
            entries = await uow.users.get_quest_progress(user_id)
        return [QuestProgress.from_model(e) for e in entries]

    async def claim_quest_reward(self, user_id: int, quest_id: str) -> ClaimResult:
        async with self.locks.hold(user_id), self.database.unit_of_work() as uow:
            quest = await uow.quests.find_by_id(quest_id)
            if quest is None:
                raise QuestNotFoundError
            user = await uow.users.get(user_id, for_update=True)
            if user is None:
                raise UserNotFoundError

            entry = await uow.users.get_quest_entry(user_id, quest_id)
            if entry is not None and entry.claimed:
                msg = "Quest already claimed"
                raise BadRequestError(msg)

            portfolio = await uow.portfolios.find_by_user_id(user_id)
            metrics = UserMetrics.collect(user, portfolio)
            info = QuestInfo.from_model(quest)
            current = measure(info.requirement_type, metrics)
            if current < info.requirement_value:
                msg = f"Quest not completed yet. Progress: {current:g}/{info.requirement_value:g}"
                raise BadRequestError(msg)

            now = utcnow()
            if entry is None:
                await uow.users.add_quest_entry(
                    UserQuestProgress(
                        user_id=user_id,
                        quest_id=quest_id,
                        progress=current,
                        completed=True,
                        claimed=True,
                        completed_at=now,
                        claimed_at=now,
                    )
                )
            else:
                entry.progress = current
                entry.completed = True
                entry.claimed = True
                entry.completed_at = entry.completed_at or now
                entry.claimed_at = now

            award = await self.gamification.apply_xp(
                uow,
                user,
                info.reward_xp,
                source=QUEST_SOURCE,
                source_id=quest_id,
                description=f"Quest '{info.title}' claimed",
                idempotency_key=quest_reward_key(quest_id, user_id),
            )

        logger.info("quest_claimed", user_id=user_id, quest_id=quest_id, xp=award.xp_gained)
        return ClaimResult(
            quest_id=quest_id,
            xp_gained=award.xp_gained,
            leveled_up=award.leveled_up,
            new_level=award.new_level,
        )
