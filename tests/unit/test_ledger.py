"""Moving-average cost basis arithmetic."""

import itertools
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from gobs.db.stores import PortfolioStore
from gobs.errors import InsufficientHoldingsError
from gobs.trading.ledger import DUST_THRESHOLD, Ledger, Position, apply_buy, apply_sell

BUYS = [(1_000.0, 50_000.0), (500.0, 40_000.0), (2_000.0, 62_500.0)]


def _buy_all(buys):
    position = None
    for usd, price in buys:
        position = apply_buy(position, usd / price, price, usd)
    return position


class TestApplyBuy:
    def test_first_buy_opens_position(self):
        position = apply_buy(None, 0.02, 50_000.0, 1_000.0)
        assert position == Position(amount=0.02, average_buy_price=50_000.0, total_invested=1_000.0)

    def test_second_buy_averages(self):
        first = apply_buy(None, 0.02, 50_000.0, 1_000.0)
        second = apply_buy(first, 0.025, 40_000.0, 1_000.0)
        assert second.amount == pytest.approx(0.045)
        assert second.total_invested == pytest.approx(2_000.0)
        assert second.average_buy_price == pytest.approx(2_000.0 / 0.045)

    @pytest.mark.parametrize("order", list(itertools.permutations(BUYS)))
    def test_order_independent(self, order):
        position = _buy_all(order)
        assert position.total_invested == pytest.approx(3_500.0)
        assert position.average_buy_price == pytest.approx(position.total_invested / position.amount)
        reference = _buy_all(BUYS)
        assert position.amount == pytest.approx(reference.amount)
        assert position.average_buy_price == pytest.approx(reference.average_buy_price)


class TestApplySell:
    def test_partial_sell_keeps_average_and_reduces_cost_basis(self):
        position = Position(amount=0.1, average_buy_price=40_000.0, total_invested=4_000.0)
        outcome = apply_sell(position, "BTC", 0.04, 50_000.0)
        assert outcome.position.amount == pytest.approx(0.06)
        assert outcome.position.average_buy_price == 40_000.0
        assert outcome.position.total_invested == pytest.approx(2_400.0)
        assert outcome.position.total_invested == pytest.approx(
            outcome.position.amount * outcome.position.average_buy_price
        )
        assert outcome.realized_profit_loss == pytest.approx(400.0)

    def test_full_sell_closes_position(self):
        position = Position(amount=0.1, average_buy_price=40_000.0, total_invested=4_000.0)
        outcome = apply_sell(position, "BTC", 0.1, 30_000.0)
        assert outcome.position is None
        assert outcome.realized_profit_loss == pytest.approx(-1_000.0)

    def test_dust_remainder_is_closed(self):
        position = Position(amount=0.1, average_buy_price=1.0, total_invested=0.1)
        outcome = apply_sell(position, "ADA", 0.1 - DUST_THRESHOLD / 2, 1.0)
        assert outcome.position is None

    def test_oversell_rejected(self):
        position = Position(amount=0.1, average_buy_price=40_000.0, total_invested=4_000.0)
        with pytest.raises(InsufficientHoldingsError):
            apply_sell(position, "BTC", 0.2, 40_000.0)

    def test_sell_without_position_rejected(self):
        with pytest.raises(InsufficientHoldingsError, match="No ETH holdings"):
            apply_sell(None, "ETH", 0.1, 2_000.0)


class TestLedger:
    """Ledger writes go through the row it locked, read once."""

    @pytest.mark.asyncio
    async def test_buy_updates_locked_holding(self):
        holding = SimpleNamespace(amount=1.0, average_buy_price=2_000.0, total_invested=2_000.0)
        store = AsyncMock(spec=PortfolioStore)
        store.get_holding.return_value = holding

        position = await Ledger(store).record_buy(1, "ETH", 1.0, 3_000.0, 3_000.0)

        assert position == Position(amount=2.0, average_buy_price=2_500.0, total_invested=5_000.0)
        store.get_holding.assert_awaited_once_with(1, "ETH", for_update=True)
        store.update_holding.assert_awaited_once_with(
            holding, amount=2.0, average_buy_price=2_500.0, total_invested=5_000.0
        )
        store.add_holding.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_buy_adds_holding(self):
        store = AsyncMock(spec=PortfolioStore)
        store.get_holding.return_value = None

        await Ledger(store).record_buy(1, "BTC", 0.02, 50_000.0, 1_000.0)

        store.get_holding.assert_awaited_once_with(1, "BTC", for_update=True)
        store.add_holding.assert_awaited_once_with(
            1, "BTC", amount=0.02, average_buy_price=50_000.0, total_invested=1_000.0
        )
        store.update_holding.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sell_without_holding(self):
        store = AsyncMock(spec=PortfolioStore)
        store.get_holding.return_value = None

        with pytest.raises(InsufficientHoldingsError, match="No SOL holdings to sell"):
            await Ledger(store).record_sell(1, "SOL", 1.0, 100.0)

        store.update_holding.assert_not_awaited()
        store.remove_holding.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sell_to_zero_removes_holding(self):
        holding = SimpleNamespace(amount=2.0, average_buy_price=100.0, total_invested=200.0)
        store = AsyncMock(spec=PortfolioStore)
        store.get_holding.return_value = holding

        outcome = await Ledger(store).record_sell(1, "SOL", 2.0, 150.0)

        assert outcome.position is None
        assert outcome.realized_profit_loss == pytest.approx(100.0)
        store.remove_holding.assert_awaited_once_with(holding)
