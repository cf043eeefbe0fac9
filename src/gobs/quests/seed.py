"""Quest seed data: the fixed catalog of 12 quests."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gobs.db.models import Quest
from gobs.quests.types import QuestRequirementType

logger = logging.getLogger(__name__)

QUEST_SEED_DATA: list[dict] = [
    # Trading activity
    {
        "id": "first_trade",
        "title": "First Trade",
        "description": "Execute your first trade and start your journey as a trader",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 1,
        "reward_xp": 50,
    },
    {
        "id": "active_trader",
        "title": "Active Trader",
        "description": "Execute 5 trades and show you are active in the market",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 5,
        "reward_xp": 100,
    },
    {
        "id": "experienced_trader",
        "title": "Experienced Trader",
        "description": "Execute 10 trades and demonstrate market experience",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 10,
        "reward_xp": 200,
    },
    {
        "id": "dedicated_trader",
        "title": "Dedicated Trader",
        "description": "Execute 25 trades and prove your dedication",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 25,
        "reward_xp": 350,
    },
    {
        "id": "veteran_trader",
        "title": "Veteran Trader",
        "description": "Execute 50 trades and reach veteran status",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 50,
        "reward_xp": 500,
    },
    {
        "id": "master_trader",
        "title": "Master Trader",
        "description": "Execute 100 trades and become a trading master",
        "requirement_type": QuestRequirementType.TOTAL_TRADES,
        "requirement_value": 100,
        "reward_xp": 1000,
    },
    # Diversity
    {
        "id": "diversified_portfolio",
        "title": "Diversified Portfolio",
        "description": "Hold 3 different cryptocurrencies in your portfolio",
        "requirement_type": QuestRequirementType.PORTFOLIO_DIVERSITY,
        "requirement_value": 3,
        "reward_xp": 150,
    },
    {
        "id": "crypto_collector",
        "title": "Crypto Collector",
        "description": "Hold all 5 available cryptocurrencies",
        "requirement_type": QuestRequirementType.PORTFOLIO_DIVERSITY,
        "requirement_value": 5,
        "reward_xp": 300,
    },
    # Net worth
    {
        "id": "serious_investor",
        "title": "Serious Investor",
        "description": "Reach a total net worth of $15,000",
        "requirement_type": QuestRequirementType.NET_WORTH,
        "requirement_value": 15_000,
        "reward_xp": 300,
    },
    {
        "id": "prosperous_investor",
        "title": "Prosperous Investor",
        "description": "Reach a total net worth of $25,000",
        "requirement_type": QuestRequirementType.NET_WORTH,
        "requirement_value": 25_000,
        "reward_xp": 600,
    },
    {
        "id": "wealthy_investor",
        "title": "Wealthy Investor",
        "description": "Reach a total net worth of $50,000",
        "requirement_type": QuestRequirementType.NET_WORTH,
        "requirement_value": 50_000,
        "reward_xp": 1000,
    },
    {
        "id": "millionaire_investor",
        "title": "Millionaire Investor",
        "description": "Reach a total net worth of $100,000",
        "requirement_type": QuestRequirementType.NET_WORTH,
        "requirement_value": 100_000,
        "reward_xp": 2000,
    },
]


async def seed_quests(db: AsyncSession) -> int:
    """Insert or update every quest definition. Safe to run on every startup."""
    existing = {q.id: q for q in (await db.execute(select(Quest))).scalars().all()}

    seeded = 0
    for sort_order, data in enumerate(QUEST_SEED_DATA, start=1):
        values = {
            "title": data["title"],
            "description": data["description"],
            "requirement_type": data["requirement_type"].value,
            "requirement_value": float(data["requirement_value"]),
            "reward_xp": data["reward_xp"],
            "sort_order": sort_order,
        }
        quest = existing.get(data["id"])
        if quest is None:
            db.add(Quest(id=data["id"], **values))
        else:
            for field, value in values.items():
                setattr(quest, field, value)
        seeded += 1

    await db.flush()
    logger.info("Seeded %d quest definitions", seeded)
    return seeded
