"""XP grants with idempotency and level-up detection.

Every grant is written to ``xp_ledger`` under an idempotency key, so replaying
a grant (a retried trade reward, a reconciliation pass) never double-counts.
XP, level and rank are always written together, under the user's lock and a
row lock, so a trade reward racing a quest claim cannot lose an update.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from gobs.database import Database, UnitOfWork
from gobs.db.models import User
from gobs.errors import BadRequestError, UserNotFoundError
from gobs.gamification.levels import (
    Rank,
    calculate_rank,
    calculate_xp_for_next_level,
    calculate_xp_for_trade,
    check_level_up,
    progress_to_next_level,
)
from gobs.locks import KeyedLock

logger = structlog.get_logger()

TRADE_SOURCE = "trade"
QUEST_SOURCE = "quest"
MANUAL_SOURCE = "manual"


def trade_reward_key(trade_id: int) -> str:
    return f"trade:{trade_id}"


def quest_reward_key(quest_id: str, user_id: int) -> str:
    return f"quest:{quest_id}:{user_id}"


@dataclass(frozen=True)
class XPAward:
    granted: bool
    xp_gained: int
    total_xp: int
    leveled_up: bool
    previous_level: int
    new_level: int
    new_rank: Rank


@dataclass(frozen=True)
class UserStats:
    xp: int
    level: int
    rank: Rank
    xp_for_next_level: int
    progress_to_next_level: int


class GamificationEngine:
    def __init__(self, database: Database, locks: KeyedLock) -> None:
        self.database = database
        self.locks = locks

    async def apply_xp(
        self,
        uow: UnitOfWork,
        user: User,
        amount: int,
        *,
        source: str,
        source_id: str | None,
        description: str,
        idempotency_key: str,
    ) -> XPAward:
        """Grant XP inside an open unit of work. Caller holds the user's lock.

        Returns an award with ``granted=False`` if the key was already used.
        """
        if amount < 0:
            msg = "XP amount must be non-negative"
            raise BadRequestError(msg)

        if await uow.xp.exists(idempotency_key):
            return XPAward(
                granted=False,
                xp_gained=0,
                total_xp=user.xp,
                leveled_up=False,
                previous_level=user.level,
                new_level=user.level,
                new_rank=calculate_rank(user.level),
            )

        await uow.xp.record(
            user_id=user.id,
            amount=amount,
            source=source,
            source_id=source_id,
            description=description,
            idempotency_key=idempotency_key,
        )

        previous_level = user.level
        new_xp = user.xp + amount
        result = check_level_up(new_xp, previous_level)
        await uow.users.set_progression(user, xp=new_xp, level=result.new_level, rank=result.new_rank.value)

        logger.info(
            "xp_awarded",
            user_id=user.id,
            amount=amount,
            source=source,
            source_id=source_id,
            total_xp=new_xp,
        )
        if result.leveled_up:
            logger.info(
                "level_up",
                user_id=user.id,
                old_level=previous_level,
                new_level=result.new_level,
                rank=result.new_rank.value,
            )

        return XPAward(
            granted=True,
            xp_gained=amount,
            total_xp=new_xp,
            leveled_up=result.leveled_up,
            previous_level=previous_level,
            new_level=result.new_level,
            new_rank=result.new_rank,
        )

    async def award_xp(
        self,
        user_id: int,
        amount: int,
        *,
        source: str = MANUAL_SOURCE,
        source_id: str | None = None,
        description: str = "",
        idempotency_key: str | None = None,
    ) -> XPAward:
        """Add XP to a user in its own transaction."""
        key = idempotency_key or f"{source}:{uuid.uuid4()}"
        async with self.locks.hold(user_id), self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id, for_update=True)
            if user is None:
                raise UserNotFoundError
            return await self.apply_xp(
                uow,
                user,
                amount,
                source=source,
                source_id=source_id,
                description=description,
                idempotency_key=key,
            )

    async def process_trade_reward(self, user_id: int, trade_id: int) -> XPAward:
        """Grant the XP for one completed trade, at most once per trade."""
        async with self.locks.hold(user_id), self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id, for_update=True)
            if user is None:
                raise UserNotFoundError
            reward = calculate_xp_for_trade(user.level)
            return await self.apply_xp(
                uow,
                user,
                reward.total_xp,
                source=TRADE_SOURCE,
                source_id=str(trade_id),
                description=f"Trade #{trade_id} completed",
                idempotency_key=trade_reward_key(trade_id),
            )

    async def reconcile_trade_rewards(self, user_id: int) -> int:
        """Grant XP for completed trades that never got their reward.

        Returns the number of trades rewarded by this pass.
        """
        async with self.database.unit_of_work() as uow:
            if await uow.users.get(user_id) is None:
                raise UserNotFoundError
            trade_ids = await uow.trades.list_completed_ids(user_id)
            rewarded = await uow.xp.rewarded_source_ids(user_id, TRADE_SOURCE)

        granted = 0
        for trade_id in trade_ids:
            if str(trade_id) in rewarded:
                continue
            award = await self.process_trade_reward(user_id, trade_id)
            if award.granted:
                granted += 1

        if granted:
            logger.info("trade_rewards_reconciled", user_id=user_id, trades_rewarded=granted)
        return granted

    async def get_user_stats(self, user_id: int) -> UserStats:
        async with self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id)
            if user is None:
                raise UserNotFoundError
            return stats_for(user)


def stats_for(user: User) -> UserStats:
    return UserStats(
        xp=user.xp,
        level=user.level,
        rank=calculate_rank(user.level),
        xp_for_next_level=calculate_xp_for_next_level(user.level),
        progress_to_next_level=progress_to_next_level(user.xp, user.level),
    )
