"""Portfolio valuation, today's P/L and daily snapshots.

All figures in one call are derived from a single price snapshot: the oracle
is consulted at most once per call, and not at all when there is nothing to
value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import structlog
from sqlalchemy.exc import IntegrityError

from gobs.database import Database
from gobs.dates import as_utc, sao_paulo_day_bounds, utc_today
from gobs.db.models import Holding, PortfolioSnapshot, Trade
from gobs.errors import BadRequestError, UserNotFoundError
from gobs.market.feed import PriceQuote
from gobs.market.oracle import PriceOracle
from gobs.market.symbols import CryptoSymbol
from gobs.trading.types import TradeType

logger = structlog.get_logger()

Prices = dict[CryptoSymbol, PriceQuote]


def _percent(profit_loss: float, invested: float) -> float:
    return profit_loss / invested * 100 if invested > 0 else 0.0


@dataclass(frozen=True)
class HoldingValue:
    symbol: CryptoSymbol
    amount: float
    average_buy_price: float
    total_invested: float
    current_price: float
    current_value: float
    profit_loss: float
    profit_loss_percent: float


@dataclass(frozen=True)
class PortfolioWithValues:
    user_id: int
    holdings: list[HoldingValue] = field(default_factory=list)
    total_portfolio_value: float = 0.0
    total_invested: float = 0.0
    total_profit_loss: float = 0.0
    total_profit_loss_percent: float = 0.0


@dataclass(frozen=True)
class TodayProfitLoss:
    profit_loss: float
    invested: float
    profit_loss_percent: float
    window_start: datetime
    window_end: datetime


@dataclass(frozen=True)
class PortfolioSummary:
    balance: float
    portfolio_value: float
    net_worth: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percent: float
    today_profit_loss: float
    today_profit_loss_percent: float


@dataclass(frozen=True)
class SnapshotRecord:
    snapshot_date: date
    total_value: float
    total_invested: float
    profit_loss: float
    profit_loss_percent: float
    created_at: datetime

    @classmethod
    def from_model(cls, snapshot: PortfolioSnapshot) -> SnapshotRecord:
        return cls(
            snapshot_date=snapshot.snapshot_date,
            total_value=snapshot.total_value,
            total_invested=snapshot.total_invested,
            profit_loss=snapshot.profit_loss,
            profit_loss_percent=snapshot.profit_loss_percent,
            created_at=as_utc(snapshot.created_at),
        )


@dataclass(frozen=True)
class PortfolioHistory:
    days: int
    snapshots: list[SnapshotRecord]


def _price_of(prices: Prices, symbol: CryptoSymbol) -> float:
    quote = prices.get(symbol)
    return quote.price if quote is not None else 0.0


def value_holdings(user_id: int, holdings: list[Holding], prices: Prices) -> PortfolioWithValues:
    valued: list[HoldingValue] = []
    for holding in holdings:
        symbol = CryptoSymbol(holding.symbol)
        current_price = _price_of(prices, symbol)
        current_value = holding.amount * current_price
        profit_loss = current_value - holding.total_invested
        valued.append(
            HoldingValue(
                symbol=symbol,
                amount=holding.amount,
                average_buy_price=holding.average_buy_price,
                total_invested=holding.total_invested,
                current_price=current_price,
                current_value=current_value,
                profit_loss=profit_loss,
                profit_loss_percent=_percent(profit_loss, holding.total_invested),
            )
        )

    total_value = sum(h.current_value for h in valued)
    total_invested = sum(h.total_invested for h in valued)
    total_profit_loss = total_value - total_invested
    return PortfolioWithValues(
        user_id=user_id,
        holdings=valued,
        total_portfolio_value=total_value,
        total_invested=total_invested,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percent=_percent(total_profit_loss, total_invested),
    )


def today_profit_loss(buys: list[Trade], prices: Prices, window: tuple[datetime, datetime]) -> TodayProfitLoss:
    """Unrealized P/L of today's BUY trades at current prices."""
    invested = sum(t.total for t in buys)
    current = sum(t.amount * _price_of(prices, CryptoSymbol(t.symbol)) for t in buys)
    profit_loss = current - invested if buys else 0.0
    return TodayProfitLoss(
        profit_loss=profit_loss,
        invested=invested,
        profit_loss_percent=_percent(profit_loss, invested),
        window_start=window[0],
        window_end=window[1],
    )


class PortfolioValuation:
    def __init__(
        self,
        database: Database,
        oracle: PriceOracle,
        *,
        history_default_days: int = 30,
        history_max_days: int = 365,
    ) -> None:
        self.database = database
        self.oracle = oracle
        self.history_default_days = history_default_days
        self.history_max_days = history_max_days

    async def _load_holdings(self, user_id: int) -> list[Holding]:
        async with self.database.unit_of_work() as uow:
            portfolio = await uow.portfolios.find_by_user_id(user_id)
            return list(portfolio.holdings) if portfolio is not None else []

    async def get_portfolio_with_values(self, user_id: int) -> PortfolioWithValues:
        """Never fails for a user without a portfolio: returns zeroed totals."""
        holdings = await self._load_holdings(user_id)
        if not holdings:
            return PortfolioWithValues(user_id=user_id)
        prices = await self.oracle.get_prices()
        return value_holdings(user_id, holdings, prices)

    async def get_today_profit_loss(self, user_id: int, now: datetime | None = None) -> TodayProfitLoss:
        window = sao_paulo_day_bounds(now)
        async with self.database.unit_of_work() as uow:
            buys = await uow.trades.find_completed_between(user_id, TradeType.BUY, *window)
        prices = await self.oracle.get_prices() if buys else {}
        return today_profit_loss(buys, prices, window)

    async def get_portfolio_summary(self, user_id: int, now: datetime | None = None) -> PortfolioSummary:
        window = sao_paulo_day_bounds(now)
        async with self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id)
            if user is None:
                raise UserNotFoundError
            balance = user.balance
            portfolio = await uow.portfolios.find_by_user_id(user_id)
            holdings = list(portfolio.holdings) if portfolio is not None else []
            buys = await uow.trades.find_completed_between(user_id, TradeType.BUY, *window)

        prices: Prices = await self.oracle.get_prices() if holdings or buys else {}
        valuation = value_holdings(user_id, holdings, prices)
        today = today_profit_loss(buys, prices, window)

        return PortfolioSummary(
            balance=balance,
            portfolio_value=valuation.total_portfolio_value,
            net_worth=balance + valuation.total_portfolio_value,
            total_invested=valuation.total_invested,
            total_profit_loss=valuation.total_profit_loss,
            total_profit_loss_percent=valuation.total_profit_loss_percent,
            today_profit_loss=today.profit_loss,
            today_profit_loss_percent=today.profit_loss_percent,
        )

    async def get_portfolio_history(
        self, user_id: int, days: int | None = None, now: datetime | None = None
    ) -> PortfolioHistory:
        """Snapshots from ``today - days`` through today (UTC), oldest first.

        ``days`` defaults to the configured window and is clamped to ``[1, max]``;
        the window actually used is returned alongside the snapshots.
        """
        days = self.history_default_days if days is None else days
        days = max(1, min(days, self.history_max_days))
        today = utc_today(now)
        async with self.database.unit_of_work() as uow:
            snapshots = await uow.snapshots.find_by_date_range(user_id, today - timedelta(days=days), today)
        return PortfolioHistory(days=days, snapshots=[SnapshotRecord.from_model(s) for s in snapshots])

    async def create_portfolio_snapshot(self, user_id: int, now: datetime | None = None) -> SnapshotRecord:
        """Record today's valuation. One snapshot per user per UTC day."""
        day = utc_today(now)
        async with self.database.unit_of_work() as uow:
            if await uow.users.get(user_id) is None:
                raise UserNotFoundError
            if await uow.snapshots.exists_for_date(user_id, day):
                msg = f"Snapshot already exists for {day.isoformat()}"
                raise BadRequestError(msg)

        valuation = await self.get_portfolio_with_values(user_id)

        try:
            async with self.database.unit_of_work() as uow:
                snapshot = await uow.snapshots.create(
                    user_id,
                    snapshot_date=day,
                    total_value=valuation.total_portfolio_value,
                    total_invested=valuation.total_invested,
                    profit_loss=valuation.total_profit_loss,
                    profit_loss_percent=valuation.total_profit_loss_percent,
                )
        except IntegrityError as exc:
            msg = f"Snapshot already exists for {day.isoformat()}"
            raise BadRequestError(msg) from exc

        logger.info("snapshot_created", user_id=user_id, date=day.isoformat(), total_value=snapshot.total_value)
        return SnapshotRecord.from_model(snapshot)
