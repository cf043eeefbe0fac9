"""Binance client: payload parsing and failure classification."""

import httpx
import pytest

from gobs.market.feed import (
    BinancePriceFeed,
    PriceFeedError,
    PriceFeedRateLimitedError,
    PriceFeedServerError,
    PriceFeedTimeoutError,
)
from gobs.market.symbols import CryptoSymbol

BASE_URL = "https://api.binance.test/api/v3"


def make_feed(handler) -> BinancePriceFeed:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BinancePriceFeed(BASE_URL, timeout=1.0, client=client)


@pytest.mark.asyncio
async def test_get_ticker_parses_price_and_change():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["symbol"] = request.url.params["symbol"]
        return httpx.Response(200, json={"lastPrice": "50123.45", "priceChangePercent": "-2.10"})

    quote = await make_feed(handler).get_ticker(CryptoSymbol.BTC)

    assert seen == {"path": "/api/v3/ticker/24hr", "symbol": "BTCUSDT"}
    assert quote.symbol is CryptoSymbol.BTC
    assert quote.price == pytest.approx(50123.45)
    assert quote.change_24h == pytest.approx(-2.10)


@pytest.mark.asyncio
async def test_get_klines_returns_close_prices():
    klines = [
        [0, "1.0", "1.2", "0.9", "1.1", "100"],
        [1, "1.1", "1.3", "1.0", "1.25", "100"],
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["interval"] == "1h"
        assert request.url.params["limit"] == "2"
        return httpx.Response(200, json=klines)

    closes = await make_feed(handler).get_klines(CryptoSymbol.ADA, "1h", 2)
    assert closes == [1.1, 1.25]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error"),
    [
        (429, PriceFeedRateLimitedError),
        (418, PriceFeedRateLimitedError),
        (500, PriceFeedServerError),
        (503, PriceFeedServerError),
    ],
)
async def test_status_classification(status, error):
    feed = make_feed(lambda request: httpx.Response(status))
    with pytest.raises(error):
        await feed.get_ticker(CryptoSymbol.ETH)


@pytest.mark.asyncio
async def test_client_error_is_generic_feed_error():
    feed = make_feed(lambda request: httpx.Response(400, json={"code": -1121}))
    with pytest.raises(PriceFeedError) as exc_info:
        await feed.get_ticker(CryptoSymbol.ETH)
    assert type(exc_info.value) is PriceFeedError


@pytest.mark.asyncio
async def test_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(PriceFeedTimeoutError):
        await make_feed(handler).get_ticker(CryptoSymbol.SOL)


@pytest.mark.asyncio
async def test_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(PriceFeedError):
        await make_feed(handler).get_ticker(CryptoSymbol.SOL)


@pytest.mark.asyncio
async def test_malformed_ticker():
    feed = make_feed(lambda request: httpx.Response(200, json={"symbol": "BTCUSDT"}))
    with pytest.raises(PriceFeedError, match="Malformed ticker"):
        await feed.get_ticker(CryptoSymbol.BTC)
