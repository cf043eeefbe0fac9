"""Request/response schemas for trading endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from gobs.trading.executor import TradeHistory, TradeRecord, TradeResult, TradeStats


class TradeRequest(BaseModel):
    """Buy or sell a USD amount of one symbol. Limits are enforced by the executor."""

    symbol: str = Field(..., min_length=1, max_length=10)
    amount_usd: float


class TradeResponse(BaseModel):
    trade_id: int
    type: str
    symbol: str
    crypto_amount: float
    price_per_unit: float
    total_usd: float
    new_balance: float
    xp_gained: int
    leveled_up: bool
    new_level: int
    realized_profit_loss: float | None = None
    executed_at: datetime

    @classmethod
    def from_result(cls, result: TradeResult) -> TradeResponse:
        return cls(
            trade_id=result.trade_id,
            type=result.type.value,
            symbol=result.symbol.value,
            crypto_amount=result.crypto_amount,
            price_per_unit=result.price_per_unit,
            total_usd=result.total_usd,
            new_balance=result.new_balance,
            xp_gained=result.xp_gained,
            leveled_up=result.leveled_up,
            new_level=result.new_level,
            realized_profit_loss=result.realized_profit_loss,
            executed_at=result.executed_at,
        )


class TradeItem(BaseModel):
    id: int
    type: str
    symbol: str
    amount: float
    price: float
    total: float
    realized_profit_loss: float | None = None
    status: str
    executed_at: datetime

    @classmethod
    def from_record(cls, record: TradeRecord) -> TradeItem:
        return cls(
            id=record.id,
            type=record.type.value,
            symbol=record.symbol.value,
            amount=record.amount,
            price=record.price,
            total=record.total,
            realized_profit_loss=record.realized_profit_loss,
            status=record.status.value,
            executed_at=record.executed_at,
        )


class TradeHistoryResponse(BaseModel):
    trades: list[TradeItem]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_history(cls, history: TradeHistory) -> TradeHistoryResponse:
        return cls(
            trades=[TradeItem.from_record(t) for t in history.trades],
            total=history.total,
            limit=history.limit,
            offset=history.offset,
        )


class TradeStatsResponse(BaseModel):
    total_trades: int
    total_buys: int
    total_sells: int
    total_volume: float
    total_realized_profit_loss: float

    @classmethod
    def from_stats(cls, stats: TradeStats) -> TradeStatsResponse:
        return cls(
            total_trades=stats.total_trades,
            total_buys=stats.total_buys,
            total_sells=stats.total_sells,
            total_volume=stats.total_volume,
            total_realized_profit_loss=stats.total_realized_profit_loss,
        )
