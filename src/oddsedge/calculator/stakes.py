"""Stake Calculator.

Computes stake splits for a chosen opportunity and a caller stake:

- Book vs book: stake_i ∝ 1/price_i, so every leg returns the same amount.
- Book vs exchange: lay stake that equalizes back-wins and lay-wins.
- Middles and value bets: plain equal-split / single-stake figures.

Full precision is kept internally; money is rounded to cents and
percentages to 2 decimals (ROUND_HALF_UP) only when building the result.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from oddsedge.models.opportunity import (
    BackLayArb,
    MiddleOpportunity,
    OpportunityKind,
    ValueBet,
)
from oddsedge.models.stake import (
    ArbValidation,
    BackLayPlan,
    MiddlePlan,
    StakeEvaluation,
    StakePlan,
    ValueBetPlan,
)
from oddsedge.strategy.back_lay import back_lay_profit_pct

CENT = Decimal("0.01")
PCT = Decimal("0.01")
IMPLIED = Decimal("0.0001")

_BOOK_VS_BOOK_KINDS = frozenset({
    OpportunityKind.MONEYLINE,
    OpportunityKind.SPREAD,
    OpportunityKind.TOTALS,
})


# ---------------------------------------------------------------------------
# Rounding (output boundary only)
# ---------------------------------------------------------------------------


def _quantize(value: float, step: Decimal) -> float:
    # repr → shortest round-trip string, so 1.005 stays 1.005 (not 1.00499...)
    return float(Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    """Round to cents, half-up.

    Ties round away from zero on both signs, so a negative tie moves
    down: -1.005 → -1.01, not the -1.00 of round-half-toward-+inf.

    Examples:
        >>> round_money(1.005)
        1.01
        >>> round_money(47.174419)
        47.17
        >>> round_money(-1.005)
        -1.01
    """
    return _quantize(value, CENT)


def round_pct(value: float) -> float:
    return _quantize(value, PCT)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _check_stake(stake: float, label: str = "stake") -> None:
    if not stake > 0:
        raise ValueError(f"{label} must be positive, got {stake}")


def _check_price(price: float, label: str = "price") -> None:
    if not price > 1.0:
        raise ValueError(f"{label} must be greater than 1.0, got {price}")


def _check_commission(commission: float) -> None:
    if not 0.0 <= commission < 1.0:
        raise ValueError(f"commission must be in [0, 1), got {commission}")


# ---------------------------------------------------------------------------
# Book vs book
# ---------------------------------------------------------------------------


def split_stakes(prices: Sequence[float], total_stake: float) -> list[float]:
    """Unrounded stake_i = total × (1/price_i) / Σ(1/price_j)."""
    weights = [1.0 / p for p in prices]
    weight_sum = sum(weights)
    return [total_stake * w / weight_sum for w in weights]


def for_book_vs_book(opportunity, total_stake: float) -> StakePlan:
    """
    Proportional split for a 2- or 3-leg arb (moneyline, spread, totals).

    Args:
        opportunity: MoneylineArb / SpreadArb / TotalsArb
        total_stake: 총 투자금

    Returns:
        StakePlan (money in cents, profit % to 2 decimals)

    Raises:
        ValueError: stake ≤ 0, any price ≤ 1.0, or an unsupported opportunity

    Example:
        2.15 / 1.92 on 100 → stakes 47.17 / 52.83, profit 1.43 (1.43%)
    """
    if getattr(opportunity, "kind", None) not in _BOOK_VS_BOOK_KINDS:
        raise ValueError(f"book-vs-book staking does not apply to {opportunity!r}")
    _check_stake(total_stake, "total_stake")

    prices = [leg.price for leg in opportunity.legs]
    if len(prices) not in (2, 3):
        raise ValueError(f"expected 2 or 3 legs, got {len(prices)}")
    for price in prices:
        _check_price(price)

    stakes = split_stakes(prices, total_stake)
    returns = [s * p for s, p in zip(stakes, prices)]
    # 모든 leg의 수익이 같으므로 첫 leg 기준
    guaranteed_profit = returns[0] - total_stake

    return StakePlan(
        total_stake=round_money(total_stake),
        stakes=tuple(round_money(s) for s in stakes),
        returns=tuple(round_money(r) for r in returns),
        guaranteed_profit=round_money(guaranteed_profit),
        profit_pct=round_pct(guaranteed_profit / total_stake * 100.0),
    )


# ---------------------------------------------------------------------------
# Book vs exchange (back/lay)
# ---------------------------------------------------------------------------


def _back_lay_plan(
    back_price: float,
    lay_price: float,
    back_stake: float,
    commission: float,
) -> BackLayPlan:
    _check_stake(back_stake, "back_stake")
    _check_price(back_price, "back price")
    _check_price(lay_price, "lay price")
    _check_commission(commission)
    if not lay_price > commission:
        raise ValueError(f"lay price {lay_price} must exceed commission {commission}")

    lay_stake = back_stake * (back_price - 1.0) / (lay_price - commission)
    lay_liability = lay_stake * (lay_price - 1.0)
    profit_if_back_wins = back_stake * (back_price - 1.0) - lay_liability
    profit_if_lay_wins = lay_stake * (1.0 - commission) - back_stake
    guaranteed_profit = min(profit_if_back_wins, profit_if_lay_wins)
    total_outlay = back_stake + lay_liability

    return BackLayPlan(
        back_stake=round_money(back_stake),
        lay_stake=round_money(lay_stake),
        lay_liability=round_money(lay_liability),
        commission=commission,
        profit_if_back_wins=round_money(profit_if_back_wins),
        profit_if_lay_wins=round_money(profit_if_lay_wins),
        guaranteed_profit=round_money(guaranteed_profit),
        profit_pct=round_pct(guaranteed_profit / total_outlay * 100.0),
    )


def for_book_vs_betfair(
    opportunity: BackLayArb,
    back_stake: float,
    commission: Optional[float] = None,
) -> BackLayPlan:
    """Lay stake equalizing both outcomes for a given back stake.

    lay = back × (back_odds − 1) / (lay_odds − commission)
    profit % is relative to total outlay (back stake + lay liability).
    commission=None → the opportunity's own commission.
    """
    comm = opportunity.commission if commission is None else commission
    return _back_lay_plan(opportunity.back.price, opportunity.lay_price, back_stake, comm)


def for_book_vs_betfair_from_total(
    opportunity: BackLayArb,
    total_outlay: float,
    commission: Optional[float] = None,
) -> BackLayPlan:
    """Solve the back stake from a total outlay (closed form).

    back = outlay / (1 + (b − 1)(l − 1) / (l − c))
    """
    comm = opportunity.commission if commission is None else commission
    _check_stake(total_outlay, "total_outlay")
    _check_commission(comm)
    b, lay = opportunity.back.price, opportunity.lay_price
    _check_price(b, "back price")
    _check_price(lay, "lay price")

    lay_factor = (b - 1.0) * (lay - 1.0) / (lay - comm)
    back_stake = total_outlay / (1.0 + lay_factor)
    return _back_lay_plan(b, lay, back_stake, comm)


# ---------------------------------------------------------------------------
# Middles / value bets
# ---------------------------------------------------------------------------


def for_middle(middle: MiddleOpportunity, total_stake: float) -> MiddlePlan:
    """Equal split across both sides.

    Inside the range both legs win; outside it exactly one does, so the
    worst case is the smaller leg return minus the total stake.
    """
    _check_stake(total_stake, "total_stake")
    prices = (middle.side1.price, middle.side2.price)
    for price in prices:
        _check_price(price)

    leg_stake = total_stake / 2.0
    returns = (leg_stake * prices[0], leg_stake * prices[1])

    return MiddlePlan(
        total_stake=round_money(total_stake),
        stakes=(round_money(leg_stake), round_money(leg_stake)),
        returns=(round_money(returns[0]), round_money(returns[1])),
        profit_if_hits=round_money(sum(returns) - total_stake),
        worst_case=round_money(min(returns) - total_stake),
    )


def for_value_bet(value_bet: ValueBet, stake: float) -> ValueBetPlan:
    """Single stake; fair probability = 1 / market average.

    EV = stake × (price × fair_p − 1)
    """
    _check_stake(stake)
    price = value_bet.leg.price
    _check_price(price)
    _check_price(value_bet.market_average, "market average")

    fair_p = 1.0 / value_bet.market_average
    potential_return = stake * price
    expected_value = stake * (price * fair_p - 1.0)

    return ValueBetPlan(
        stake=round_money(stake),
        potential_return=round_money(potential_return),
        potential_profit=round_money(potential_return - stake),
        implied_probability_pct=round_pct(100.0 / price),
        fair_probability_pct=round_pct(fair_p * 100.0),
        expected_value=round_money(expected_value),
        expected_value_pct=round_pct(expected_value / stake * 100.0),
    )


def evaluate_stakes(prices: Sequence[float], stakes: Sequence[float]) -> StakeEvaluation:
    """Outcome of arbitrary (user-edited) stakes, one per leg."""
    if len(prices) != len(stakes) or not prices:
        raise ValueError(f"need one stake per price, got {len(stakes)} for {len(prices)}")
    for price in prices:
        _check_price(price)
    for stake in stakes:
        if stake < 0:
            raise ValueError(f"stake must not be negative, got {stake}")
    total = sum(stakes)
    _check_stake(total, "total stake")

    returns = [s * p for s, p in zip(stakes, prices)]
    profits = [r - total for r in returns]
    worst = min(profits)

    return StakeEvaluation(
        total_stake=round_money(total),
        returns=tuple(round_money(r) for r in returns),
        profits=tuple(round_money(p) for p in profits),
        worst_case_profit=round_money(worst),
        profit_pct=round_pct(worst / total * 100.0),
    )


# ---------------------------------------------------------------------------
# Pre-execution validation
# ---------------------------------------------------------------------------


def validate_arbitrage(*prices: float) -> ArbValidation:
    """Re-check a book-vs-book arb from raw prices just before placing it.

    Odds may have moved since detection; this does not re-fetch them.
    profit % uses the detector formula (1/Σ − 1) × 100, 0 when invalid.

    Valid only when Σ 1/price < 1. Break-even (Σ exactly 1, e.g.
    2.00 / 2.00) is reported invalid even though the detectors classify
    it as an ARB at 0% profit.
    """
    if len(prices) < 2:
        raise ValueError(f"need at least 2 prices, got {len(prices)}")
    for price in prices:
        _check_price(price)

    implied_sum = sum(1.0 / p for p in prices)
    is_valid = implied_sum < 1.0
    profit_pct = (1.0 / implied_sum - 1.0) * 100.0 if is_valid else 0.0
    return ArbValidation(
        is_valid=is_valid,
        profit_pct=round_pct(profit_pct),
        implied_sum=_quantize(implied_sum, IMPLIED),
    )


def validate_betfair_arbitrage(
    back_price: float,
    lay_price: float,
    commission: float = 0.05,
) -> ArbValidation:
    """Back/lay re-check: back − 1 > (lay − 1)(1 − commission)."""
    _check_price(back_price, "back price")
    _check_price(lay_price, "lay price")
    _check_commission(commission)

    profit_pct = back_lay_profit_pct(back_price, lay_price, commission)
    is_valid = profit_pct > 0
    if not is_valid:
        profit_pct = 0.0
    return ArbValidation(is_valid=is_valid, profit_pct=round_pct(profit_pct))
