"""Service wiring and shared FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, Request
from redis.asyncio import Redis

from gobs.accounts.service import AccountService
from gobs.config import Settings
from gobs.database import Database
from gobs.errors import UnauthorizedError
from gobs.gamification.engine import GamificationEngine
from gobs.locks import KeyedLock
from gobs.market.feed import BinancePriceFeed
from gobs.market.oracle import CachedPriceOracle, PriceOracle
from gobs.portfolio.valuation import PortfolioValuation
from gobs.quests.engine import QuestEngine
from gobs.redis_client import close_redis, create_redis
from gobs.trading.executor import TradeExecutor


@dataclass
class Services:
    """Everything a request handler or worker job can reach."""

    settings: Settings
    database: Database
    oracle: PriceOracle
    locks: KeyedLock
    gamification: GamificationEngine
    executor: TradeExecutor
    valuation: PortfolioValuation
    quests: QuestEngine
    accounts: AccountService
    redis: Redis | None = None
    feed: BinancePriceFeed | None = None

    async def close(self) -> None:
        if self.feed is not None:
            await self.feed.close()
        if self.redis is not None:
            await close_redis(self.redis)
        await self.database.dispose()


def assemble_services(
    settings: Settings,
    database: Database,
    oracle: PriceOracle,
    *,
    redis: Redis | None = None,
    feed: BinancePriceFeed | None = None,
) -> Services:
    """Wire the core components around one shared per-user lock registry."""
    locks = KeyedLock()
    gamification = GamificationEngine(database, locks)
    return Services(
        settings=settings,
        database=database,
        oracle=oracle,
        locks=locks,
        gamification=gamification,
        executor=TradeExecutor(
            database,
            oracle,
            gamification,
            locks,
            min_trade_usd=settings.min_trade_usd,
            max_trade_usd=settings.max_trade_usd,
            history_max_limit=settings.trade_history_max_limit,
        ),
        valuation=PortfolioValuation(
            database,
            oracle,
            history_default_days=settings.portfolio_history_default_days,
            history_max_days=settings.portfolio_history_max_days,
        ),
        quests=QuestEngine(database, gamification, locks),
        accounts=AccountService(database, initial_balance=settings.initial_balance),
        redis=redis,
        feed=feed,
    )


def build_services(settings: Settings) -> Services:
    """Production wiring: Postgres, Redis and the Binance feed."""
    database = Database(settings.database_url, echo=settings.debug)
    redis = create_redis(settings.redis_url)
    feed = BinancePriceFeed(settings.binance_base_url, timeout=settings.price_request_timeout_seconds)
    oracle = CachedPriceOracle(
        feed,
        redis,
        price_ttl=settings.price_cache_ttl_seconds,
        stale_ttl=settings.price_stale_ttl_seconds,
        sparkline_ttl=settings.sparkline_cache_ttl_seconds,
    )
    return assemble_services(settings, database, oracle, redis=redis, feed=feed)


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user_id(x_user_id: str | None = Header(None)) -> int:
    """Caller identity as resolved by the upstream auth gateway."""
    if not x_user_id:
        msg = "Authentication required"
        raise UnauthorizedError(msg)
    try:
        user_id = int(x_user_id)
    except ValueError:
        msg = "Invalid user identity"
        raise UnauthorizedError(msg) from None
    if user_id <= 0:
        msg = "Invalid user identity"
        raise UnauthorizedError(msg)
    return user_id
