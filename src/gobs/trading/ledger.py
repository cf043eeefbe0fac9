"""Holdings bookkeeping with a moving-average cost basis.

The arithmetic lives in ``apply_buy`` / ``apply_sell`` so it can be checked
without a database; ``Ledger`` applies the result through a ``PortfolioStore``
inside the caller's unit of work.

Cost basis rules:
    buy:  total_invested += cost, amount += units,
          average_buy_price = total_invested / amount
    sell: amount -= units, total_invested -= units * average_buy_price,
          average_buy_price unchanged
"""

from __future__ import annotations

from dataclasses import dataclass

from gobs.db.models import Holding
from gobs.db.stores import PortfolioStore
from gobs.errors import InsufficientHoldingsError

# Remaining amounts at or below this many units are treated as a closed position.
DUST_THRESHOLD = 1e-12


@dataclass(frozen=True)
class Position:
    amount: float
    average_buy_price: float
    total_invested: float


@dataclass(frozen=True)
class SellOutcome:
    position: Position | None
    realized_profit_loss: float
    cost_basis_sold: float


def apply_buy(existing: Position | None, crypto_amount: float, price: float, total_usd: float) -> Position:
    if existing is None:
        return Position(amount=crypto_amount, average_buy_price=price, total_invested=total_usd)

    new_amount = existing.amount + crypto_amount
    new_total_invested = existing.total_invested + total_usd
    return Position(
        amount=new_amount,
        average_buy_price=new_total_invested / new_amount,
        total_invested=new_total_invested,
    )


def apply_sell(existing: Position | None, symbol: str, crypto_amount: float, price: float) -> SellOutcome:
    """Reduce a position. Returns ``position=None`` when it is closed out."""
    if existing is None:
        msg = f"No {symbol} holdings to sell"
        raise InsufficientHoldingsError(msg)
    if crypto_amount - existing.amount > DUST_THRESHOLD:
        msg = f"Insufficient {symbol} holdings: have {existing.amount:.8f}, need {crypto_amount:.8f}"
        raise InsufficientHoldingsError(msg)

    sold = min(crypto_amount, existing.amount)
    cost_basis_sold = sold * existing.average_buy_price
    realized = (price - existing.average_buy_price) * sold
    remaining = existing.amount - sold

    if remaining <= DUST_THRESHOLD:
        return SellOutcome(position=None, realized_profit_loss=realized, cost_basis_sold=existing.total_invested)

    return SellOutcome(
        position=Position(
            amount=remaining,
            average_buy_price=existing.average_buy_price,
            total_invested=max(existing.total_invested - cost_basis_sold, 0.0),
        ),
        realized_profit_loss=realized,
        cost_basis_sold=cost_basis_sold,
    )


def _position_of(holding: Holding) -> Position:
    return Position(
        amount=holding.amount,
        average_buy_price=holding.average_buy_price,
        total_invested=holding.total_invested,
    )


class Ledger:
    """Applies buys and sells to stored holdings."""

    def __init__(self, portfolios: PortfolioStore) -> None:
        self.portfolios = portfolios

    async def record_buy(
        self, user_id: int, symbol: str, crypto_amount: float, price: float, total_usd: float
    ) -> Position:
        holding = await self.portfolios.get_holding(user_id, symbol, for_update=True)
        if holding is None:
            position = apply_buy(None, crypto_amount, price, total_usd)
            await self.portfolios.add_holding(
                user_id,
                symbol,
                amount=position.amount,
                average_buy_price=position.average_buy_price,
                total_invested=position.total_invested,
            )
            return position

        position = apply_buy(_position_of(holding), crypto_amount, price, total_usd)
        await self.portfolios.update_holding(
            holding,
            amount=position.amount,
            average_buy_price=position.average_buy_price,
            total_invested=position.total_invested,
        )
        return position

    async def record_sell(self, user_id: int, symbol: str, crypto_amount: float, price: float) -> SellOutcome:
        holding = await self.portfolios.get_holding(user_id, symbol, for_update=True)
        if holding is None:
            msg = f"No {symbol} holdings to sell"
            raise InsufficientHoldingsError(msg)

        outcome = apply_sell(_position_of(holding), symbol, crypto_amount, price)
        if outcome.position is None:
            await self.portfolios.remove_holding(holding)
        else:
            await self.portfolios.update_holding(
                holding,
                amount=outcome.position.amount,
                average_buy_price=outcome.position.average_buy_price,
                total_invested=outcome.position.total_invested,
            )
        return outcome
