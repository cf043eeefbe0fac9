"""Trade execution.

A buy or sell is one atomic unit: balance, holding, trade record and trade
counter are written in a single transaction under the user's lock, with the
user and holding rows read ``FOR UPDATE``. The price is resolved before the
transaction opens, so an unavailable price never leaves partial state behind.

XP for the trade is granted after commit and is best-effort: a failing reward
is logged and left for ``GamificationEngine.reconcile_trade_rewards``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

import structlog

from gobs.database import Database
from gobs.dates import as_utc
from gobs.db.models import Trade
from gobs.errors import BadRequestError, GobsError, InsufficientFundsError, PriceUnavailableError, UserNotFoundError
from gobs.gamification.engine import GamificationEngine
from gobs.locks import KeyedLock
from gobs.market.oracle import PriceOracle
from gobs.market.symbols import CryptoSymbol, parse_symbol
from gobs.trading.ledger import Ledger
from gobs.trading.types import TradeStatus, TradeType

logger = structlog.get_logger()

DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class TradeResult:
    trade_id: int
    type: TradeType
    symbol: CryptoSymbol
    crypto_amount: float
    price_per_unit: float
    total_usd: float
    new_balance: float
    xp_gained: int
    leveled_up: bool
    new_level: int
    realized_profit_loss: float | None
    executed_at: datetime


@dataclass(frozen=True)
class TradeRecord:
    id: int
    type: TradeType
    symbol: CryptoSymbol
    amount: float
    price: float
    total: float
    realized_profit_loss: float | None
    status: TradeStatus
    executed_at: datetime

    @classmethod
    def from_model(cls, trade: Trade) -> TradeRecord:
        return cls(
            id=trade.id,
            type=TradeType(trade.type),
            symbol=CryptoSymbol(trade.symbol),
            amount=trade.amount,
            price=trade.price,
            total=trade.total,
            realized_profit_loss=trade.realized_profit_loss,
            status=TradeStatus(trade.status),
            executed_at=as_utc(trade.executed_at),
        )


@dataclass(frozen=True)
class TradeHistory:
    trades: list[TradeRecord]
    total: int
    limit: int
    offset: int


@dataclass(frozen=True)
class TradeStats:
    total_trades: int
    total_buys: int
    total_sells: int
    total_volume: float
    total_realized_profit_loss: float


@dataclass(frozen=True)
class _Committed:
    trade_id: int
    crypto_amount: float
    new_balance: float
    level: int
    realized_profit_loss: float | None
    executed_at: datetime


class TradeExecutor:
    def __init__(
        self,
        database: Database,
        oracle: PriceOracle,
        gamification: GamificationEngine,
        locks: KeyedLock,
        *,
        min_trade_usd: float = 10.0,
        max_trade_usd: float = 1_000_000.0,
        history_max_limit: int = 100,
    ) -> None:
        self.database = database
        self.oracle = oracle
        self.gamification = gamification
        self.locks = locks
        self.min_trade_usd = min_trade_usd
        self.max_trade_usd = max_trade_usd
        self.history_max_limit = history_max_limit

    def validate(self, symbol: str | CryptoSymbol, amount_usd: float) -> CryptoSymbol:
        """Reject out-of-policy input before any I/O."""
        parsed = parse_symbol(symbol)
        if not isinstance(amount_usd, (int, float)) or isinstance(amount_usd, bool) or not math.isfinite(amount_usd):
            msg = "Amount must be a finite number"
            raise BadRequestError(msg)
        if amount_usd < self.min_trade_usd:
            msg = f"Minimum trade amount is ${self.min_trade_usd:,.2f}"
            raise BadRequestError(msg)
        if amount_usd > self.max_trade_usd:
            msg = f"Maximum trade amount is ${self.max_trade_usd:,.2f}"
            raise BadRequestError(msg)
        return parsed

    async def _resolve_price(self, symbol: CryptoSymbol) -> float:
        quote = await self.oracle.get_price(symbol)
        if not math.isfinite(quote.price) or quote.price <= 0:
            msg = f"Price for {symbol.value} is currently unavailable"
            raise PriceUnavailableError(msg)
        return quote.price

    # ------------------------------------------------------------------
    # Buy / sell
    # ------------------------------------------------------------------

    async def execute_buy(self, user_id: int, symbol: str | CryptoSymbol, amount_usd: float) -> TradeResult:
        return await self._execute(TradeType.BUY, user_id, symbol, amount_usd)

    async def execute_sell(self, user_id: int, symbol: str | CryptoSymbol, amount_usd: float) -> TradeResult:
        return await self._execute(TradeType.SELL, user_id, symbol, amount_usd)

    async def _execute(
        self, trade_type: TradeType, user_id: int, symbol: str | CryptoSymbol, amount_usd: float
    ) -> TradeResult:
        try:
            parsed = self.validate(symbol, amount_usd)
            price = await self._resolve_price(parsed)
            amount_usd = float(amount_usd)
            if trade_type is TradeType.BUY:
                committed = await self._commit_buy(user_id, parsed, amount_usd, price)
            else:
                committed = await self._commit_sell(user_id, parsed, amount_usd, price)
        except GobsError as exc:
            logger.info(
                "trade_rejected",
                user_id=user_id,
                type=trade_type.value,
                symbol=str(symbol),
                amount_usd=amount_usd,
                code=exc.code,
                reason=exc.message,
            )
            raise

        logger.info(
            "trade_executed",
            user_id=user_id,
            trade_id=committed.trade_id,
            type=trade_type.value,
            symbol=parsed.value,
            amount_usd=amount_usd,
            price=price,
            new_balance=committed.new_balance,
        )

        xp_gained, leveled_up, new_level = await self._reward(user_id, committed)

        return TradeResult(
            trade_id=committed.trade_id,
            type=trade_type,
            symbol=parsed,
            crypto_amount=committed.crypto_amount,
            price_per_unit=price,
            total_usd=amount_usd,
            new_balance=committed.new_balance,
            xp_gained=xp_gained,
            leveled_up=leveled_up,
            new_level=new_level,
            realized_profit_loss=committed.realized_profit_loss,
            executed_at=committed.executed_at,
        )

    async def _commit_buy(self, user_id: int, symbol: CryptoSymbol, amount_usd: float, price: float) -> _Committed:
        crypto_amount = amount_usd / price
        async with self.locks.hold(user_id), self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id, for_update=True)
            if user is None:
                raise UserNotFoundError
            if user.balance < amount_usd:
                msg = f"Insufficient balance: available ${user.balance:,.2f}, required ${amount_usd:,.2f}"
                raise InsufficientFundsError(msg)

            await Ledger(uow.portfolios).record_buy(user_id, symbol.value, crypto_amount, price, amount_usd)
            trade = await uow.trades.create(
                user_id,
                TradeType.BUY,
                symbol.value,
                amount=crypto_amount,
                price=price,
                total=amount_usd,
            )
            new_balance = user.balance - amount_usd
            await uow.users.record_trade(user, new_balance)
            return _Committed(
                trade_id=trade.id,
                crypto_amount=crypto_amount,
                new_balance=new_balance,
                level=user.level,
                realized_profit_loss=None,
                executed_at=as_utc(trade.executed_at),
            )

    async def _commit_sell(self, user_id: int, symbol: CryptoSymbol, amount_usd: float, price: float) -> _Committed:
        crypto_amount = amount_usd / price
        async with self.locks.hold(user_id), self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id, for_update=True)
            if user is None:
                raise UserNotFoundError

            outcome = await Ledger(uow.portfolios).record_sell(user_id, symbol.value, crypto_amount, price)
            trade = await uow.trades.create(
                user_id,
                TradeType.SELL,
                symbol.value,
                amount=crypto_amount,
                price=price,
                total=amount_usd,
                realized_profit_loss=outcome.realized_profit_loss,
            )
            new_balance = user.balance + amount_usd
            await uow.users.record_trade(user, new_balance)
            return _Committed(
                trade_id=trade.id,
                crypto_amount=crypto_amount,
                new_balance=new_balance,
                level=user.level,
                realized_profit_loss=outcome.realized_profit_loss,
                executed_at=as_utc(trade.executed_at),
            )

    async def _reward(self, user_id: int, committed: _Committed) -> tuple[int, bool, int]:
        # The trade is already committed; nothing here may undo it.
        try:
            award = await self.gamification.process_trade_reward(user_id, committed.trade_id)
        except Exception:
            logger.warning(
                "trade_reward_failed",
                user_id=user_id,
                trade_id=committed.trade_id,
                exc_info=True,
            )
            return 0, False, committed.level
        return award.xp_gained, award.leveled_up, award.new_level

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def get_trade_history(
        self,
        user_id: int,
        *,
        symbol: str | CryptoSymbol | None = None,
        trade_type: TradeType | str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> TradeHistory:
        """Trades newest first, plus the total count matching the filters."""
        if limit < 1 or limit > self.history_max_limit:
            msg = f"limit must be between 1 and {self.history_max_limit}"
            raise BadRequestError(msg)
        if offset < 0:
            msg = "offset must be non-negative"
            raise BadRequestError(msg)
        if start_date is not None and end_date is not None and start_date > end_date:
            msg = "startDate must not be after endDate"
            raise BadRequestError(msg)

        parsed_symbol = parse_symbol(symbol).value if symbol is not None else None
        parsed_type: TradeType | None = None
        if trade_type is not None:
            try:
                parsed_type = TradeType(str(trade_type).upper())
            except ValueError:
                msg = f"Unsupported trade type '{trade_type}'"
                raise BadRequestError(msg) from None

        filters = {
            "symbol": parsed_symbol,
            "trade_type": parsed_type,
            "start": as_utc(start_date) if start_date is not None else None,
            "end": as_utc(end_date) if end_date is not None else None,
        }
        async with self.database.unit_of_work() as uow:
            trades = await uow.trades.find_by_user_id(user_id, limit=limit, offset=offset, **filters)
            total = await uow.trades.count_by_user_id(user_id, **filters)

        return TradeHistory(
            trades=[TradeRecord.from_model(t) for t in trades],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def get_trade_stats(self, user_id: int) -> TradeStats:
        async with self.database.unit_of_work() as uow:
            stats = await uow.trades.get_trade_stats(user_id)
        return TradeStats(
            total_trades=int(stats["total_trades"]),
            total_buys=int(stats["total_buys"]),
            total_sells=int(stats["total_sells"]),
            total_volume=stats["total_volume"],
            total_realized_profit_loss=stats["total_realized_profit_loss"],
        )
