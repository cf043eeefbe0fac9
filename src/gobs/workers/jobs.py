"""Scheduled portfolio and reward jobs.

Each job receives the arq context; ``ctx["services"]`` is populated by
``worker_startup``. Per-user failures are logged and counted, never allowed
to abort the rest of the batch.
"""

from __future__ import annotations

import logging

from gobs.config import get_settings
from gobs.dates import utc_today
from gobs.dependencies import Services, build_services
from gobs.errors import GobsError
from gobs.middleware.logging import setup_logging
from gobs.quests.seed import seed_quests

logger = logging.getLogger(__name__)


async def worker_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Configure logging and wire services for the worker process."""
    settings = get_settings()
    setup_logging(settings)
    services = build_services(settings)
    async with services.database.unit_of_work() as uow:
        await seed_quests(uow.session)
    ctx["services"] = services
    logger.info("Portfolio worker started")


async def worker_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    services: Services | None = ctx.get("services")
    if services is not None:
        await services.close()
    logger.info("Portfolio worker shut down")


async def snapshot_all_portfolios(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Daily: record today's snapshot for every user that has none yet."""
    services: Services = ctx["services"]
    today = utc_today()
    async with services.database.unit_of_work() as uow:
        user_ids = await uow.users.list_ids()

    created = skipped = failed = 0
    for user_id in user_ids:
        async with services.database.unit_of_work() as uow:
            exists = await uow.snapshots.exists_for_date(user_id, today)
        if exists:
            skipped += 1
            continue
        try:
            await services.valuation.create_portfolio_snapshot(user_id)
            created += 1
        except GobsError as exc:
            failed += 1
            logger.warning("Snapshot failed for user %d: %s", user_id, exc.message)
        except Exception:
            failed += 1
            logger.exception("Snapshot failed for user %d", user_id)

    logger.info("Portfolio snapshots for %s: %d created, %d skipped, %d failed", today, created, skipped, failed)
    return {"created": created, "skipped": skipped, "failed": failed}


async def reconcile_all_trade_rewards(ctx: dict) -> int:  # type: ignore[type-arg]
    """Hourly: grant XP for completed trades whose reward never landed."""
    services: Services = ctx["services"]
    async with services.database.unit_of_work() as uow:
        user_ids = await uow.users.list_ids()

    total = 0
    for user_id in user_ids:
        try:
            total += await services.gamification.reconcile_trade_rewards(user_id)
        except Exception:
            logger.exception("Trade reward reconciliation failed for user %d", user_id)

    if total:
        logger.info("Reconciled %d missing trade rewards", total)
    return total
