"""Data access stores.

Each store wraps one ``AsyncSession``. Stores never commit: the enclosing
``UnitOfWork`` owns the transaction so that writes from several stores land
together or not at all.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gobs.db.models import (
    Holding,
    Portfolio,
    PortfolioSnapshot,
    Quest,
    Trade,
    User,
    UserQuestProgress,
    XPLedger,
)
from gobs.trading.types import TradeStatus, TradeType


class UserStore:
    """Users and their quest progress entries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: int, *, for_update: bool = False) -> User | None:
        query = select(User).where(User.id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def exists_by_username(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def create(self, username: str, email: str, password_hash: str, balance: float) -> User:
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            balance=balance,
            total_trades=0,
            xp=0,
            level=1,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def list_ids(self) -> list[int]:
        result = await self.session.execute(select(User.id).where(User.is_active.is_(True)).order_by(User.id))
        return list(result.scalars().all())

    async def record_trade(self, user: User, new_balance: float) -> None:
        """Set the post-trade balance and bump the trade counter."""
        user.balance = new_balance
        user.total_trades = (user.total_trades or 0) + 1
        await self.session.flush()

    async def set_progression(self, user: User, xp: int, level: int, rank: str) -> None:
        user.xp = xp
        user.level = level
        user.rank = rank
        await self.session.flush()

    # --- Quest progress ---

    async def get_quest_progress(self, user_id: int) -> list[UserQuestProgress]:
        result = await self.session.execute(
            select(UserQuestProgress)
            .where(UserQuestProgress.user_id == user_id)
            .order_by(UserQuestProgress.id)
        )
        return list(result.scalars().all())

    async def get_quest_entry(self, user_id: int, quest_id: str) -> UserQuestProgress | None:
        result = await self.session.execute(
            select(UserQuestProgress).where(
                UserQuestProgress.user_id == user_id,
                UserQuestProgress.quest_id == quest_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_quest_entry(self, entry: UserQuestProgress) -> UserQuestProgress:
        self.session.add(entry)
        await self.session.flush()
        return entry


class PortfolioStore:
    """Portfolios and their holdings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_user_id(self, user_id: int) -> Portfolio | None:
        result = await self.session.execute(
            select(Portfolio)
            .where(Portfolio.user_id == user_id)
            .options(selectinload(Portfolio.holdings))
        )
        return result.scalar_one_or_none()

    async def get_holding(self, user_id: int, symbol: str, *, for_update: bool = False) -> Holding | None:
        query = (
            select(Holding)
            .join(Portfolio, Holding.portfolio_id == Portfolio.id)
            .where(Portfolio.user_id == user_id, Holding.symbol == symbol)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def _get_or_create_portfolio_id(self, user_id: int) -> int:
        result = await self.session.execute(select(Portfolio.id).where(Portfolio.user_id == user_id))
        portfolio_id = result.scalar_one_or_none()
        if portfolio_id is not None:
            return portfolio_id
        portfolio = Portfolio(user_id=user_id)
        self.session.add(portfolio)
        await self.session.flush()
        return portfolio.id

    async def add_holding(
        self,
        user_id: int,
        symbol: str,
        amount: float,
        average_buy_price: float,
        total_invested: float,
    ) -> Holding:
        """Insert a new holding, creating the user's portfolio row if needed."""
        portfolio_id = await self._get_or_create_portfolio_id(user_id)
        holding = Holding(
            portfolio_id=portfolio_id,
            symbol=symbol,
            amount=amount,
            average_buy_price=average_buy_price,
            total_invested=total_invested,
        )
        self.session.add(holding)
        await self.session.flush()
        return holding

    async def update_holding(
        self, holding: Holding, *, amount: float, average_buy_price: float, total_invested: float
    ) -> None:
        holding.amount = amount
        holding.average_buy_price = average_buy_price
        holding.total_invested = total_invested
        await self.session.flush()

    async def remove_holding(self, holding: Holding) -> None:
        await self.session.execute(delete(Holding).where(Holding.id == holding.id))
        await self.session.flush()


class TradeStore:
    """Append-only trade history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        user_id: int,
        trade_type: TradeType,
        symbol: str,
        amount: float,
        price: float,
        total: float,
        *,
        realized_profit_loss: float | None = None,
        status: TradeStatus = TradeStatus.COMPLETED,
        executed_at: datetime | None = None,
    ) -> Trade:
        trade = Trade(
            user_id=user_id,
            type=trade_type.value,
            symbol=symbol,
            amount=amount,
            price=price,
            total=total,
            realized_profit_loss=realized_profit_loss,
            status=status.value,
        )
        if executed_at is not None:
            trade.executed_at = executed_at
        self.session.add(trade)
        await self.session.flush()
        return trade

    @staticmethod
    def _filtered(
        query: Any,
        user_id: int,
        symbol: str | None,
        trade_type: TradeType | None,
        start: datetime | None,
        end: datetime | None,
    ) -> Any:
        query = query.where(Trade.user_id == user_id)
        if symbol is not None:
            query = query.where(Trade.symbol == symbol)
        if trade_type is not None:
            query = query.where(Trade.type == trade_type.value)
        if start is not None:
            query = query.where(Trade.executed_at >= start)
        if end is not None:
            query = query.where(Trade.executed_at <= end)
        return query

    async def find_by_user_id(
        self,
        user_id: int,
        *,
        symbol: str | None = None,
        trade_type: TradeType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Trade]:
        query = self._filtered(select(Trade), user_id, symbol, trade_type, start, end)
        query = query.order_by(Trade.executed_at.desc(), Trade.id.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_user_id(
        self,
        user_id: int,
        *,
        symbol: str | None = None,
        trade_type: TradeType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        query = self._filtered(select(func.count(Trade.id)), user_id, symbol, trade_type, start, end)
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def get_trade_stats(self, user_id: int) -> dict[str, float]:
        result = await self.session.execute(
            select(
                func.count(Trade.id),
                func.sum(case((Trade.type == TradeType.BUY.value, 1), else_=0)),
                func.sum(case((Trade.type == TradeType.SELL.value, 1), else_=0)),
                func.sum(Trade.total),
                func.sum(Trade.realized_profit_loss),
            ).where(Trade.user_id == user_id, Trade.status == TradeStatus.COMPLETED.value)
        )
        total, buys, sells, volume, realized = result.one()
        return {
            "total_trades": int(total or 0),
            "total_buys": int(buys or 0),
            "total_sells": int(sells or 0),
            "total_volume": float(volume or 0.0),
            "total_realized_profit_loss": float(realized or 0.0),
        }

    async def find_completed_between(
        self, user_id: int, trade_type: TradeType, start: datetime, end: datetime
    ) -> list[Trade]:
        result = await self.session.execute(
            select(Trade)
            .where(
                Trade.user_id == user_id,
                Trade.type == trade_type.value,
                Trade.status == TradeStatus.COMPLETED.value,
                Trade.executed_at >= start,
                Trade.executed_at <= end,
            )
            .order_by(Trade.executed_at.asc(), Trade.id.asc())
        )
        return list(result.scalars().all())

    async def list_completed_ids(self, user_id: int) -> list[int]:
        result = await self.session.execute(
            select(Trade.id)
            .where(Trade.user_id == user_id, Trade.status == TradeStatus.COMPLETED.value)
            .order_by(Trade.id)
        )
        return list(result.scalars().all())


class SnapshotStore:
    """Daily portfolio snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        user_id: int,
        snapshot_date: date,
        total_value: float,
        total_invested: float,
        profit_loss: float,
        profit_loss_percent: float,
    ) -> PortfolioSnapshot:
        snapshot = PortfolioSnapshot(
            user_id=user_id,
            snapshot_date=snapshot_date,
            total_value=total_value,
            total_invested=total_invested,
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
        )
        self.session.add(snapshot)
        await self.session.flush()
        return snapshot

    async def find_by_date_range(self, user_id: int, start: date, end: date) -> list[PortfolioSnapshot]:
        result = await self.session.execute(
            select(PortfolioSnapshot)
            .where(
                PortfolioSnapshot.user_id == user_id,
                PortfolioSnapshot.snapshot_date >= start,
                PortfolioSnapshot.snapshot_date <= end,
            )
            .order_by(PortfolioSnapshot.snapshot_date.asc())
        )
        return list(result.scalars().all())

    async def exists_for_date(self, user_id: int, snapshot_date: date) -> bool:
        result = await self.session.execute(
            select(func.count(PortfolioSnapshot.id)).where(
                PortfolioSnapshot.user_id == user_id,
                PortfolioSnapshot.snapshot_date == snapshot_date,
            )
        )
        return int(result.scalar_one()) > 0


class QuestCatalogStore:
    """Read-only quest catalog (written only by the seeder)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_all(self) -> list[Quest]:
        result = await self.session.execute(select(Quest).order_by(Quest.sort_order, Quest.id))
        return list(result.scalars().all())

    async def find_by_id(self, quest_id: str) -> Quest | None:
        return await self.session.get(Quest, quest_id)


class XPLedgerStore:
    """XP grant history keyed by idempotency key."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, idempotency_key: str) -> bool:
        result = await self.session.execute(
            select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key)
        )
        return result.scalar_one_or_none() is not None

    async def record(
        self,
        user_id: int,
        amount: int,
        source: str,
        source_id: str,
        description: str,
        idempotency_key: str,
    ) -> XPLedger:
        entry = XPLedger(
            user_id=user_id,
            amount=amount,
            source=source,
            source_id=source_id,
            description=description,
            idempotency_key=idempotency_key,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def rewarded_source_ids(self, user_id: int, source: str) -> set[str]:
        result = await self.session.execute(
            select(XPLedger.source_id).where(XPLedger.user_id == user_id, XPLedger.source == source)
        )
        return {row for row in result.scalars().all() if row is not None}
