"""Supported crypto assets."""

from __future__ import annotations

from enum import Enum

from gobs.errors import BadRequestError


class CryptoSymbol(str, Enum):
    BTC = "BTC"
    ETH = "ETH"
    BNB = "BNB"
    SOL = "SOL"
    ADA = "ADA"

    @property
    def display_name(self) -> str:
        return CRYPTO_NAMES[self]

    @property
    def pair(self) -> str:
        """Exchange trading pair, quoted in USDT."""
        return f"{self.value}USDT"


CRYPTO_NAMES: dict[CryptoSymbol, str] = {
    CryptoSymbol.BTC: "Bitcoin",
    CryptoSymbol.ETH: "Ethereum",
    CryptoSymbol.BNB: "Binance Coin",
    CryptoSymbol.SOL: "Solana",
    CryptoSymbol.ADA: "Cardano",
}


def parse_symbol(value: str | CryptoSymbol) -> CryptoSymbol:
    """Coerce user input into a supported symbol.

    Raises:
        BadRequestError: If the symbol is not supported.
    """
    if isinstance(value, CryptoSymbol):
        return value
    try:
        return CryptoSymbol(str(value).upper())
    except ValueError:
        options = ", ".join(s.value for s in CryptoSymbol)
        msg = f"Unsupported symbol '{value}'. Options: {options}"
        raise BadRequestError(msg) from None
