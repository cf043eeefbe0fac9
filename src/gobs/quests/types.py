"""Quest requirement kinds."""

from enum import Enum


class QuestRequirementType(str, Enum):
    TOTAL_TRADES = "TOTAL_TRADES"
    PORTFOLIO_DIVERSITY = "PORTFOLIO_DIVERSITY"
    NET_WORTH = "NET_WORTH"
    PROFIT_PERCENTAGE = "PROFIT_PERCENTAGE"
