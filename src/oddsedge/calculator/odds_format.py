"""Odds format conversion (decimal / American / fractional)."""

from __future__ import annotations

from fractions import Fraction

# 자주 쓰이는 분수 표기 (가까우면 이쪽을 우선)
COMMON_FRACTIONS: tuple[Fraction, ...] = tuple(
    Fraction(n, d)
    for n, d in (
        (1, 10), (1, 5), (1, 4), (2, 7), (1, 3), (2, 5), (4, 9), (1, 2),
        (8, 13), (4, 6), (8, 11), (4, 5), (10, 11), (1, 1), (11, 10),
        (6, 5), (5, 4), (11, 8), (6, 4), (13, 8), (7, 4), (15, 8),
        (2, 1), (9, 4), (5, 2), (11, 4), (3, 1), (7, 2), (4, 1), (9, 2),
        (5, 1), (6, 1), (7, 1), (8, 1), (9, 1), (10, 1),
    )
)
COMMON_FRACTION_TOLERANCE = 0.005
MAX_DENOMINATOR = 100


def _check_decimal(price: float) -> None:
    if not price > 1.0:
        raise ValueError(f"decimal odds must be greater than 1.0, got {price}")


def american_to_decimal(american: float) -> float:
    """+150 → 2.5, -200 → 1.5. Values in (-100, 100) are invalid."""
    if american >= 100:
        return 1.0 + american / 100.0
    if american <= -100:
        return 1.0 + 100.0 / abs(american)
    raise ValueError(f"American odds must be ≥ +100 or ≤ -100, got {american}")


def decimal_to_american(price: float) -> int:
    """2.5 → +150, 1.5 → -200 (가장 가까운 정수)."""
    _check_decimal(price)
    if price >= 2.0:
        return round((price - 1.0) * 100)
    return round(-100.0 / (price - 1.0))


def decimal_to_fractional(price: float) -> str:
    """2.5 → "3/2", 1.91 → "10/11" (common fraction if within tolerance)."""
    _check_decimal(price)
    profit = price - 1.0
    for frac in COMMON_FRACTIONS:
        if abs(float(frac) - profit) <= COMMON_FRACTION_TOLERANCE:
            return f"{frac.numerator}/{frac.denominator}"
    frac = Fraction(profit).limit_denominator(MAX_DENOMINATOR)
    return f"{frac.numerator}/{frac.denominator}"


def implied_probability(price: float) -> float:
    """1 / price, as a percentage."""
    _check_decimal(price)
    return 100.0 / price
