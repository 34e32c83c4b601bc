"""Stake plan result models. Money fields are rounded to cents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StakePlan:
    """Proportional book-vs-book stake split."""

    total_stake: float
    stakes: tuple[float, ...]
    returns: tuple[float, ...]
    guaranteed_profit: float
    profit_pct: float


@dataclass(frozen=True)
class BackLayPlan:
    """Back/lay equalization result."""

    back_stake: float
    lay_stake: float
    lay_liability: float
    commission: float
    profit_if_back_wins: float
    profit_if_lay_wins: float
    guaranteed_profit: float
    profit_pct: float

    @property
    def total_outlay(self) -> float:
        return round(self.back_stake + self.lay_liability, 2)


@dataclass(frozen=True)
class MiddlePlan:
    """Equal-stake middle: both legs win inside the range, one wins outside."""

    total_stake: float
    stakes: tuple[float, float]
    returns: tuple[float, float]
    profit_if_hits: float
    worst_case: float          # 중간 미적중 시 최소 손익 (음수 = 손실)


@dataclass(frozen=True)
class ValueBetPlan:
    """Single value bet, EV estimated with the market-average probability."""

    stake: float
    potential_return: float
    potential_profit: float
    implied_probability_pct: float
    fair_probability_pct: float
    expected_value: float
    expected_value_pct: float


@dataclass(frozen=True)
class StakeEvaluation:
    """Outcome of user-edited stakes."""

    total_stake: float
    returns: tuple[float, ...]
    profits: tuple[float, ...]
    worst_case_profit: float
    profit_pct: float


@dataclass(frozen=True)
class ArbValidation:
    """Pre-execution re-check from raw prices."""

    is_valid: bool
    profit_pct: float
    implied_sum: Optional[float] = None   # back/lay 검증에는 없음
