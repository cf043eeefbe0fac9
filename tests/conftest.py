"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gobs.config import Settings
from gobs.database import Database
from gobs.db.models import User
from gobs.dependencies import Services, assemble_services
from gobs.errors import PriceUnavailableError
from gobs.main import create_app
from gobs.market.feed import PriceQuote
from gobs.market.symbols import CryptoSymbol
from gobs.quests.seed import seed_quests

DEFAULT_PRICES: dict[CryptoSymbol, float] = {
    CryptoSymbol.BTC: 50_000.0,
    CryptoSymbol.ETH: 2_500.0,
    CryptoSymbol.BNB: 400.0,
    CryptoSymbol.SOL: 100.0,
    CryptoSymbol.ADA: 0.5,
}


class FakePriceOracle:
    """Scripted oracle: prices are set by the test, calls are counted."""

    def __init__(self, prices: dict[CryptoSymbol, float] | None = None) -> None:
        self.prices = dict(prices or DEFAULT_PRICES)
        self.unavailable = False
        self.price_calls = 0
        self.prices_calls = 0

    def set_price(self, symbol: CryptoSymbol, price: float) -> None:
        self.prices[symbol] = price

    def _quote(self, symbol: CryptoSymbol) -> PriceQuote:
        if self.unavailable:
            msg = f"Price for {symbol.value} is currently unavailable"
            raise PriceUnavailableError(msg)
        return PriceQuote(symbol=symbol, price=self.prices[symbol], change_24h=1.5)

    async def get_price(self, symbol: CryptoSymbol) -> PriceQuote:
        self.price_calls += 1
        return self._quote(symbol)

    async def get_prices(self) -> dict[CryptoSymbol, PriceQuote]:
        self.prices_calls += 1
        return {symbol: self._quote(symbol) for symbol in CryptoSymbol}

    async def get_sparkline(self, symbol: CryptoSymbol, interval: str, points: int) -> list[float]:
        quote = self._quote(symbol)
        return [quote.price] * points


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'gobs_test.db'}",
        log_format="console",
        environment="test",
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh SQLite database with schema and quest catalog."""
    db = Database(settings.database_url)
    await db.create_all()
    async with db.unit_of_work() as uow:
        await seed_quests(uow.session)
    yield db
    await db.dispose()


@pytest.fixture
def oracle() -> FakePriceOracle:
    return FakePriceOracle()


@pytest.fixture
def services(settings: Settings, database: Database, oracle: FakePriceOracle) -> Services:
    return assemble_services(settings, database, oracle)


@pytest.fixture
def make_user(database: Database) -> Callable[..., Awaitable[User]]:
    """Factory inserting a user directly (skips argon2 hashing)."""
    counter = {"n": 0}

    async def _make(balance: float = 10_000.0, username: str | None = None) -> User:
        counter["n"] += 1
        name = username or f"trader_{counter['n']}"
        async with database.unit_of_work() as uow:
            return await uow.users.create(
                username=name,
                email=f"{name}@example.com",
                password_hash="not-a-real-hash",
                balance=balance,
            )

    return _make


@pytest_asyncio.fixture
async def client(settings: Settings, services: Services) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with test services injected in place of the lifespan wiring."""
    app = create_app(settings)
    app.state.services = services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
