"""Binance public market-data client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from gobs.market.symbols import CryptoSymbol

logger = structlog.get_logger()


class PriceFeedError(Exception):
    """The market feed could not answer."""


class PriceFeedTimeoutError(PriceFeedError):
    pass


class PriceFeedRateLimitedError(PriceFeedError):
    pass


class PriceFeedServerError(PriceFeedError):
    pass


@dataclass(frozen=True)
class PriceQuote:
    symbol: CryptoSymbol
    price: float
    change_24h: float

    def to_cache(self) -> dict[str, Any]:
        return {"symbol": self.symbol.value, "price": self.price, "change_24h": self.change_24h}

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> PriceQuote:
        return cls(
            symbol=CryptoSymbol(data["symbol"]),
            price=float(data["price"]),
            change_24h=float(data["change_24h"]),
        )


class BinancePriceFeed:
    """Reads tickers and klines from the Binance REST API.

    Failures are classified so callers can tell a timeout from a rate limit
    from an exchange outage. No retries happen here.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers={"Accept": "application/json"})
        self.timeout = timeout

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, endpoint: str, params: dict[str, str | int]) -> Any:  # noqa: ANN401
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            msg = f"Binance API timeout for {endpoint}"
            raise PriceFeedTimeoutError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Binance API network error for {endpoint}"
            raise PriceFeedError(msg) from exc

        status = response.status_code
        if status in (418, 429):
            msg = f"Binance API rate limit exceeded for {endpoint}"
            raise PriceFeedRateLimitedError(msg)
        if status >= 500:
            msg = f"Binance API server error ({status}) for {endpoint}"
            raise PriceFeedServerError(msg)
        if status >= 400:
            msg = f"Binance API error ({status}) for {endpoint}"
            raise PriceFeedError(msg)

        try:
            return response.json()
        except ValueError as exc:
            msg = f"Binance API returned invalid JSON for {endpoint}"
            raise PriceFeedError(msg) from exc

    async def get_ticker(self, symbol: CryptoSymbol) -> PriceQuote:
        data = await self._request("/ticker/24hr", {"symbol": symbol.pair})
        try:
            return PriceQuote(
                symbol=symbol,
                price=float(data["lastPrice"]),
                change_24h=float(data["priceChangePercent"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("price_feed_error", symbol=symbol.value, operation="get_ticker", error=str(exc))
            msg = f"Malformed ticker payload for {symbol.pair}"
            raise PriceFeedError(msg) from exc

    async def get_klines(self, symbol: CryptoSymbol, interval: str, limit: int) -> list[float]:
        """Close prices, oldest first."""
        data = await self._request("/klines", {"symbol": symbol.pair, "interval": interval, "limit": limit})
        try:
            return [float(kline[4]) for kline in data]
        except (IndexError, TypeError, ValueError) as exc:
            logger.error("price_feed_error", symbol=symbol.value, operation="get_klines", error=str(exc))
            msg = f"Malformed klines payload for {symbol.pair}"
            raise PriceFeedError(msg) from exc
