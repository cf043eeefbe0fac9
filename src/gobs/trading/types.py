"""Trade enums shared by the ORM layer and the trading service."""

from enum import Enum


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
