"""Pydantic response models for portfolio endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from gobs.portfolio.valuation import PortfolioSummary, PortfolioWithValues, SnapshotRecord


class HoldingResponse(BaseModel):
    symbol: str
    amount: float
    average_buy_price: float
    total_invested: float
    current_price: float
    current_value: float
    profit_loss: float
    profit_loss_percent: float


class PortfolioResponse(BaseModel):
    holdings: list[HoldingResponse]
    total_portfolio_value: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percent: float

    @classmethod
    def from_valuation(cls, valuation: PortfolioWithValues) -> PortfolioResponse:
        return cls(
            holdings=[
                HoldingResponse(
                    symbol=h.symbol.value,
                    amount=h.amount,
                    average_buy_price=h.average_buy_price,
                    total_invested=h.total_invested,
                    current_price=h.current_price,
                    current_value=h.current_value,
                    profit_loss=h.profit_loss,
                    profit_loss_percent=h.profit_loss_percent,
                )
                for h in valuation.holdings
            ],
            total_portfolio_value=valuation.total_portfolio_value,
            total_invested=valuation.total_invested,
            total_profit_loss=valuation.total_profit_loss,
            total_profit_loss_percent=valuation.total_profit_loss_percent,
        )


class PortfolioSummaryResponse(BaseModel):
    balance: float
    portfolio_value: float
    net_worth: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percent: float
    today_profit_loss: float
    today_profit_loss_percent: float

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> PortfolioSummaryResponse:
        return cls(
            balance=summary.balance,
            portfolio_value=summary.portfolio_value,
            net_worth=summary.net_worth,
            total_invested=summary.total_invested,
            total_profit_loss=summary.total_profit_loss,
            total_profit_loss_percent=summary.total_profit_loss_percent,
            today_profit_loss=summary.today_profit_loss,
            today_profit_loss_percent=summary.today_profit_loss_percent,
        )


class SnapshotResponse(BaseModel):
    snapshot_date: date
    total_value: float
    total_invested: float
    profit_loss: float
    profit_loss_percent: float
    created_at: datetime

    @classmethod
    def from_record(cls, record: SnapshotRecord) -> SnapshotResponse:
        return cls(
            snapshot_date=record.snapshot_date,
            total_value=record.total_value,
            total_invested=record.total_invested,
            profit_loss=record.profit_loss,
            profit_loss_percent=record.profit_loss_percent,
            created_at=record.created_at,
        )


class PortfolioHistoryResponse(BaseModel):
    days: int
    snapshots: list[SnapshotResponse]
