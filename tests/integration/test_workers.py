"""Scheduled jobs."""

from __future__ import annotations

import logging

import pytest

from gobs.middleware.logging import HANDLER_NAME
from gobs.workers import jobs
from gobs.workers.jobs import reconcile_all_trade_rewards, snapshot_all_portfolios, worker_startup


@pytest.mark.asyncio
async def test_snapshot_all_portfolios(services, make_user):
    first = await make_user()
    await make_user()
    await services.valuation.create_portfolio_snapshot(first.id)

    result = await snapshot_all_portfolios({"services": services})
    assert result == {"created": 1, "skipped": 1, "failed": 0}

    rerun = await snapshot_all_portfolios({"services": services})
    assert rerun == {"created": 0, "skipped": 2, "failed": 0}


@pytest.mark.asyncio
async def test_snapshot_failures_are_counted(services, oracle, make_user):
    user = await make_user()
    await services.executor.execute_buy(user.id, "BTC", 100)
    oracle.unavailable = True

    result = await snapshot_all_portfolios({"services": services})
    assert result == {"created": 0, "skipped": 0, "failed": 1}


@pytest.mark.asyncio
async def test_reconcile_all_trade_rewards(services, make_user, monkeypatch):
    user = await make_user()

    async def broken_reward(user_id: int, trade_id: int):
        raise RuntimeError("xp store unavailable")

    monkeypatch.setattr(services.gamification, "process_trade_reward", broken_reward)
    await services.executor.execute_buy(user.id, "ETH", 100)
    await services.executor.execute_buy(user.id, "ETH", 100)
    monkeypatch.undo()

    assert await reconcile_all_trade_rewards({"services": services}) == 2
    assert await reconcile_all_trade_rewards({"services": services}) == 0


@pytest.mark.asyncio
async def test_worker_startup_configures_logging(settings, services, monkeypatch, capsys):
    monkeypatch.setattr(jobs, "get_settings", lambda: settings)
    monkeypatch.setattr(jobs, "build_services", lambda _settings: services)
    root = logging.getLogger()
    try:
        ctx: dict = {}
        await worker_startup(ctx)
        assert ctx["services"] is services
        assert any(h.get_name() == HANDLER_NAME for h in root.handlers)

        jobs.logger.info("Portfolio snapshots for %s: %d created", "today", 3)
        err = capsys.readouterr().err
        assert "Portfolio worker started" in err
        assert "Portfolio snapshots for today: 3 created" in err
    finally:
        for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
            root.removeHandler(handler)
