"""Quest progress and reward claims."""

from __future__ import annotations

import asyncio

import pytest

from gobs.errors import BadRequestError, QuestNotFoundError, UserNotFoundError
from gobs.quests.seed import QUEST_SEED_DATA


def _by_id(quests):
    return {q.quest.id: q for q in quests}


@pytest.mark.asyncio
async def test_catalog_is_seeded_in_order(services):
    quests = await services.quests.get_all_quests()
    assert [q.id for q in quests] == [q["id"] for q in QUEST_SEED_DATA]


@pytest.mark.asyncio
async def test_new_user_progress(services, make_user):
    user = await make_user()
    quests = _by_id(await services.quests.get_quests_with_progress(user.id))

    assert len(quests) == len(QUEST_SEED_DATA)
    assert quests["first_trade"].user_progress.progress == 0
    assert quests["first_trade"].user_progress.completed is False
    assert quests["serious_investor"].user_progress.progress == pytest.approx(10_000.0)
    assert not any(q.user_progress.claimed for q in quests.values())


@pytest.mark.asyncio
async def test_viewing_does_not_persist_progress(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)
    await services.quests.get_quests_with_progress(user.id)

    assert await services.quests.get_user_quest_progress(user.id) == []


@pytest.mark.asyncio
async def test_first_trade_claim(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)

    available = [q.quest.id for q in await services.quests.get_available_quests(user.id)]
    assert available == ["first_trade"]

    result = await services.quests.claim_quest_reward(user.id, "first_trade")
    assert result.xp_gained == 50
    assert result.leveled_up is False
    assert result.new_level == 1

    stats = await services.gamification.get_user_stats(user.id)
    assert stats.xp == 11 + 50

    completed = await services.quests.get_completed_quests(user.id)
    assert [q.quest.id for q in completed] == ["first_trade"]
    assert completed[0].user_progress.claimed_at is not None
    assert await services.quests.get_available_quests(user.id) == []


@pytest.mark.asyncio
async def test_double_claim_rejected(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)
    await services.quests.claim_quest_reward(user.id, "first_trade")

    with pytest.raises(BadRequestError, match="Quest already claimed"):
        await services.quests.claim_quest_reward(user.id, "first_trade")

    stats = await services.gamification.get_user_stats(user.id)
    assert stats.xp == 61


@pytest.mark.asyncio
async def test_claim_racing_trade_reward_keeps_both_grants(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)

    trade, claim = await asyncio.gather(
        services.executor.execute_buy(user.id, "ETH", 100),
        services.quests.claim_quest_reward(user.id, "first_trade"),
    )

    assert claim.xp_gained == 50
    stats = await services.gamification.get_user_stats(user.id)
    assert stats.xp == 11 + 11 + 50
    async with services.database.unit_of_work() as uow:
        assert (await uow.users.get(user.id)).total_trades == 2
        assert await uow.xp.exists(f"trade:{trade.trade_id}")


@pytest.mark.asyncio
async def test_concurrent_claims_award_once(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)

    results = await asyncio.gather(
        services.quests.claim_quest_reward(user.id, "first_trade"),
        services.quests.claim_quest_reward(user.id, "first_trade"),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, BadRequestError)) == 1
    stats = await services.gamification.get_user_stats(user.id)
    assert stats.xp == 61


@pytest.mark.asyncio
async def test_claim_before_completion(services, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)

    with pytest.raises(BadRequestError, match=r"Quest not completed yet\. Progress: 1/5"):
        await services.quests.claim_quest_reward(user.id, "active_trader")


@pytest.mark.asyncio
async def test_unknown_quest(services, make_user):
    user = await make_user()
    with pytest.raises(QuestNotFoundError):
        await services.quests.claim_quest_reward(user.id, "moon_landing")


@pytest.mark.asyncio
async def test_unknown_user(services):
    with pytest.raises(UserNotFoundError):
        await services.quests.claim_quest_reward(99_999, "first_trade")
    with pytest.raises(UserNotFoundError):
        await services.quests.get_quests_with_progress(99_999)


@pytest.mark.asyncio
async def test_progress_frozen_once_completed(services, make_user):
    user = await make_user()
    for symbol in ("BTC", "ETH", "SOL"):
        await services.executor.execute_buy(user.id, symbol, 100)
    await services.quests.claim_quest_reward(user.id, "diversified_portfolio")

    await services.executor.execute_sell(user.id, "SOL", 100)

    quests = _by_id(await services.quests.get_quests_with_progress(user.id))
    diversified = quests["diversified_portfolio"].user_progress
    assert diversified.progress == 3
    assert diversified.completed is True
    assert diversified.claimed is True
    # Not yet completed quests keep tracking the live metric.
    assert quests["crypto_collector"].user_progress.progress == 2


@pytest.mark.asyncio
async def test_net_worth_quest_levels_up(services, make_user):
    user = await make_user(balance=20_000)

    result = await services.quests.claim_quest_reward(user.id, "serious_investor")

    assert result.xp_gained == 300
    assert result.leveled_up is True
    # 300 XP clears the 100, 200 and 300 thresholds
    assert result.new_level == 4
