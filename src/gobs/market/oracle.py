"""Redis-cached price oracle with stale-on-error fallback.

Each cached value is written twice: a fresh key with a short TTL and a
``stale:`` copy that lives much longer. Reads go to the fresh key first;
when the feed fails, the stale copy is served instead. Only when both the
feed and the stale copy are unavailable does a lookup fail with
``PriceUnavailableError``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from gobs.errors import PriceUnavailableError
from gobs.market.feed import BinancePriceFeed, PriceFeedError, PriceQuote
from gobs.market.symbols import CryptoSymbol

logger = structlog.get_logger()

PRICE_KEY_PREFIX = "price:"
SPARKLINE_KEY_PREFIX = "sparkline:"
STALE_PREFIX = "stale:"


class PriceOracle(Protocol):
    """What the trading core needs from market data."""

    async def get_price(self, symbol: CryptoSymbol) -> PriceQuote: ...

    async def get_prices(self) -> dict[CryptoSymbol, PriceQuote]: ...

    async def get_sparkline(self, symbol: CryptoSymbol, interval: str, points: int) -> list[float]: ...


class CachedPriceOracle:
    def __init__(
        self,
        feed: BinancePriceFeed,
        redis: Redis,
        *,
        price_ttl: int = 60,
        stale_ttl: int = 86_400,
        sparkline_ttl: int = 300,
    ) -> None:
        self.feed = feed
        self.redis = redis
        self.price_ttl = price_ttl
        self.stale_ttl = stale_ttl
        self.sparkline_ttl = sparkline_ttl

    # --- Redis helpers (failures degrade to cache misses) ---

    async def _read(self, key: str) -> Any | None:  # noqa: ANN401
        try:
            raw = await self.redis.get(key)
        except RedisError:
            logger.warning("price_cache_read_failed", key=key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("price_cache_corrupt", key=key)
            return None

    async def _write(self, key: str, value: Any, ttl: int) -> None:  # noqa: ANN401
        payload = json.dumps(value)
        try:
            await self.redis.set(key, payload, ex=ttl)
            await self.redis.set(STALE_PREFIX + key, payload, ex=self.stale_ttl)
        except RedisError:
            logger.warning("price_cache_write_failed", key=key, exc_info=True)

    async def _cached(
        self,
        key: str,
        ttl: int,
        fetch: Callable[[], Awaitable[Any]],
        what: str,
    ) -> Any:  # noqa: ANN401
        cached = await self._read(key)
        if cached is not None:
            return cached

        try:
            value = await fetch()
        except PriceFeedError as exc:
            logger.warning("price_feed_error", key=key, error=str(exc), error_type=type(exc).__name__)
            stale = await self._read(STALE_PREFIX + key)
            if stale is not None:
                logger.info("price_cache_stale_hit", key=key)
                return stale
            logger.error("price_cache_unavailable", key=key)
            msg = f"{what} is currently unavailable"
            raise PriceUnavailableError(msg) from exc

        await self._write(key, value, ttl)
        return value

    # --- Oracle contract ---

    async def get_price(self, symbol: CryptoSymbol) -> PriceQuote:
        async def fetch() -> dict[str, Any]:
            quote = await self.feed.get_ticker(symbol)
            return quote.to_cache()

        data = await self._cached(PRICE_KEY_PREFIX + symbol.value, self.price_ttl, fetch, f"Price for {symbol.value}")
        return PriceQuote.from_cache(data)

    async def get_prices(self) -> dict[CryptoSymbol, PriceQuote]:
        quotes = await asyncio.gather(*(self.get_price(symbol) for symbol in CryptoSymbol))
        return {quote.symbol: quote for quote in quotes}

    async def get_sparkline(self, symbol: CryptoSymbol, interval: str, points: int) -> list[float]:
        async def fetch() -> list[float]:
            return await self.feed.get_klines(symbol, interval, points)

        key = f"{SPARKLINE_KEY_PREFIX}{symbol.value}:{interval}:{points}"
        data = await self._cached(key, self.sparkline_ttl, fetch, f"Sparkline for {symbol.value}")
        return [float(v) for v in data]
