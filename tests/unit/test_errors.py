"""Error taxonomy and symbol parsing."""

import pytest

from gobs.errors import (
    BadRequestError,
    ConflictError,
    GobsError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    NotFoundError,
    PriceUnavailableError,
    QuestNotFoundError,
    UnauthorizedError,
    UserNotFoundError,
)
from gobs.market.symbols import CryptoSymbol, parse_symbol


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (BadRequestError("x"), 400, "BAD_REQUEST"),
        (InsufficientFundsError("x"), 400, "INSUFFICIENT_FUNDS"),
        (InsufficientHoldingsError("x"), 400, "INSUFFICIENT_HOLDINGS"),
        (UnauthorizedError("x"), 401, "UNAUTHORIZED"),
        (UserNotFoundError(), 404, "USER_NOT_FOUND"),
        (QuestNotFoundError(), 404, "QUEST_NOT_FOUND"),
        (ConflictError("x"), 409, "CONFLICT"),
        (PriceUnavailableError("x"), 503, "PRICE_UNAVAILABLE"),
    ],
)
def test_status_and_code(error, status, code):
    assert isinstance(error, GobsError)
    assert error.status_code == status
    assert error.code == code


def test_not_found_family():
    assert isinstance(UserNotFoundError(), NotFoundError)
    assert isinstance(QuestNotFoundError(), NotFoundError)
    assert UserNotFoundError().message == "User not found"


def test_to_dict():
    assert BadRequestError("Minimum trade amount is $10.00").to_dict() == {
        "detail": "Minimum trade amount is $10.00",
        "code": "BAD_REQUEST",
    }


class TestParseSymbol:
    def test_case_insensitive(self):
        assert parse_symbol("btc") is CryptoSymbol.BTC

    def test_passthrough(self):
        assert parse_symbol(CryptoSymbol.ADA) is CryptoSymbol.ADA

    def test_unsupported(self):
        with pytest.raises(BadRequestError, match="Unsupported symbol 'DOGE'"):
            parse_symbol("DOGE")

    def test_pair_and_name(self):
        assert CryptoSymbol.BNB.pair == "BNBUSDT"
        assert CryptoSymbol.BNB.display_name == "Binance Coin"
