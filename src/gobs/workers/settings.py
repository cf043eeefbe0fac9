"""arq worker settings module.

Import path for arq CLI: arq gobs.workers.settings.WorkerSettings
"""

from __future__ import annotations

from datetime import timezone

from arq import cron
from arq.connections import RedisSettings

from gobs.config import get_settings
from gobs.workers.jobs import (
    reconcile_all_trade_rewards,
    snapshot_all_portfolios,
    worker_shutdown,
    worker_startup,
)


class WorkerSettings:
    """arq worker settings for scheduled portfolio jobs."""

    functions = [snapshot_all_portfolios, reconcile_all_trade_rewards]
    cron_jobs = [
        cron(snapshot_all_portfolios, hour=0, minute=5),  # daily 00:05 UTC
        cron(reconcile_all_trade_rewards, minute=30),  # hourly
    ]
    on_startup = worker_startup
    on_shutdown = worker_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 4
    job_timeout = 600
    allow_abort_jobs = True
    timezone = timezone.utc
