"""XP rewards, level thresholds and rank bands.

Pure arithmetic, no I/O. The level curve is linear: reaching level N+1
requires ``N * 100`` total XP.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

BASE_TRADE_XP = 10
XP_PER_LEVEL = 100


class Rank(str, Enum):
    INICIANTE = "INICIANTE"
    BRONZE = "BRONZE"
    PRATA = "PRATA"
    OURO = "OURO"
    DIAMANTE = "DIAMANTE"


# (rank, min level, max level), contiguous from level 1
RANK_THRESHOLDS: list[tuple[Rank, int, float]] = [
    (Rank.INICIANTE, 1, 9),
    (Rank.BRONZE, 10, 24),
    (Rank.PRATA, 25, 49),
    (Rank.OURO, 50, 99),
    (Rank.DIAMANTE, 100, math.inf),
]


@dataclass(frozen=True)
class TradeXP:
    base_xp: int
    level_multiplier: float
    total_xp: int


@dataclass(frozen=True)
class LevelUpResult:
    leveled_up: bool
    new_level: int
    new_rank: Rank
    xp_for_next_level: int


def calculate_xp_for_trade(level: int) -> TradeXP:
    """XP for one completed trade: ``floor(10 * (1 + level * 0.1))``."""
    multiplier = 1 + level * 0.1
    return TradeXP(
        base_xp=BASE_TRADE_XP,
        level_multiplier=multiplier,
        total_xp=math.floor(BASE_TRADE_XP * multiplier),
    )


def calculate_xp_for_next_level(level: int) -> int:
    return level * XP_PER_LEVEL


def calculate_rank(level: int) -> Rank:
    for rank, low, high in RANK_THRESHOLDS:
        if low <= level <= high:
            return rank
    return Rank.INICIANTE


def check_level_up(current_xp: int, current_level: int) -> LevelUpResult:
    """Advance the level as far as ``current_xp`` allows.

    Supports multi-level jumps from a single award.
    """
    new_level = current_level
    while current_xp >= calculate_xp_for_next_level(new_level):
        new_level += 1

    return LevelUpResult(
        leveled_up=new_level > current_level,
        new_level=new_level,
        new_rank=calculate_rank(new_level),
        xp_for_next_level=calculate_xp_for_next_level(new_level),
    )


def progress_to_next_level(xp: int, level: int) -> int:
    """Percentage (0-100) of the way through the current level band."""
    needed = calculate_xp_for_next_level(level)
    if needed <= 0:
        return 0
    return math.floor((xp % needed) / needed * 100)
