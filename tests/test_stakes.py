"""Tests for the stake calculator (book vs book, back/lay, middles, value bets)."""

from __future__ import annotations

import pytest

from oddsedge.calculator.stakes import (
    evaluate_stakes,
    for_book_vs_betfair,
    for_book_vs_betfair_from_total,
    for_book_vs_book,
    for_middle,
    for_value_bet,
    round_money,
    round_pct,
    split_stakes,
    validate_arbitrage,
    validate_betfair_arbitrage,
)
from oddsedge.models.opportunity import ArbType, BackLayArb, LayQuote, Leg
from oddsedge.strategy.back_lay import detect_back_lay
from oddsedge.strategy.lines import detect_spreads, detect_totals
from oddsedge.strategy.moneyline import detect_moneyline
from oddsedge.strategy.value_bet import detect_value_bets

from conftest import NOW, build_event


def _back_lay(back: float = 2.50, lay: float = 2.20, commission: float = 0.05) -> BackLayArb:
    event = build_event({
        "bet365": {"h2h": [("Los Angeles Lakers", back), ("Boston Celtics", 1.60)]},
    })
    return detect_back_lay(
        event, [("Los Angeles Lakers", LayQuote(lay_price=lay))], commission=commission,
    )[0]


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


class TestRounding:
    def test_half_up(self):
        assert round_money(1.005) == 1.01
        assert round_money(2.675) == 2.68
        assert round_money(-1.005) == -1.01

    def test_negative_ties_away_from_zero(self):
        """Lay-side loss -33.725 → -33.73, -0.125 → -0.13; non-ties unaffected."""
        assert round_money(-33.725) == -33.73
        assert round_money(-0.125) == -0.13
        assert round_money(-33.724) == -33.72
        assert round_pct(-18.345) == -18.35

    def test_pct(self):
        assert round_pct(1.42502) == 1.43
        assert round_pct(26.0504) == 26.05


# ---------------------------------------------------------------------------
# Book vs book
# ---------------------------------------------------------------------------


class TestBookVsBook:
    def test_scenario_a(self, scenario_a_event):
        """2.15 / 1.92 on $100: stakes 47.17 / 52.83, profit $1.43 (1.43%)."""
        plan = for_book_vs_book(detect_moneyline(scenario_a_event), 100.0)
        assert plan.total_stake == 100.0
        assert plan.stakes == (47.17, 52.83)
        assert plan.guaranteed_profit == pytest.approx(1.43)
        assert plan.profit_pct == pytest.approx(1.43)

    def test_equal_returns_across_legs(self, scenario_a_event):
        """|s1·p1 − s2·p2| < 0.02 and s1 + s2 == total within rounding."""
        opp = detect_moneyline(scenario_a_event)
        plan = for_book_vs_book(opp, 250.0)
        s1, s2 = plan.stakes
        p1, p2 = (leg.price for leg in opp.legs)
        assert abs(s1 * p1 - s2 * p2) < 0.02
        assert s1 + s2 == pytest.approx(250.0, abs=0.011)

    def test_three_way(self):
        """2.50 / 3.80 / 4.20 on $100 → every leg returns 100 / 0.9013 ≈ 110.96."""
        event = build_event(
            {
                "bet365": {"h2h": [("Arsenal", 2.50), ("Draw", 3.30), ("Chelsea", 3.90)]},
                "williamhill": {"h2h": [("Arsenal", 2.20), ("Draw", 3.80), ("Chelsea", 4.20)]},
            },
            sport_key="soccer_epl", home="Arsenal", away="Chelsea",
        )
        plan = for_book_vs_book(detect_moneyline(event), 100.0)
        assert len(plan.stakes) == 3
        assert sum(plan.stakes) == pytest.approx(100.0, abs=0.02)
        for r in plan.returns:
            assert r == pytest.approx(110.96, abs=0.005)

    def test_spread_arb(self):
        event = build_event({
            "bet365": {"spreads": [("Los Angeles Lakers", 2.10, -3.5), ("Boston Celtics", 1.80, 3.5)]},
            "pinnacle": {"spreads": [("Los Angeles Lakers", 1.85, -3.5), ("Boston Celtics", 2.05, 3.5)]},
        })
        arb = detect_spreads(event).arbs[0]
        plan = for_book_vs_book(arb, 100.0)
        assert plan.profit_pct == pytest.approx(round(arb.profit_pct, 2))

    def test_near_arb_has_negative_profit(self):
        event = build_event({
            "bet365": {"h2h": [("Los Angeles Lakers", 1.97), ("Boston Celtics", 1.90)]},
            "pinnacle": {"h2h": [("Los Angeles Lakers", 1.90), ("Boston Celtics", 1.97)]},
        })
        plan = for_book_vs_book(detect_moneyline(event), 100.0)
        assert plan.stakes == (50.0, 50.0)
        assert plan.guaranteed_profit == pytest.approx(-1.5)

    def test_rejects_non_positive_stake(self, scenario_a_event):
        opp = detect_moneyline(scenario_a_event)
        with pytest.raises(ValueError):
            for_book_vs_book(opp, 0.0)
        with pytest.raises(ValueError):
            for_book_vs_book(opp, -10.0)

    def test_rejects_back_lay_opportunity(self):
        with pytest.raises(ValueError):
            for_book_vs_book(_back_lay(), 100.0)

    def test_split_stakes_unrounded(self):
        stakes = split_stakes([2.0, 2.0], 100.0)
        assert stakes == [50.0, 50.0]


# ---------------------------------------------------------------------------
# Back / lay
# ---------------------------------------------------------------------------


class TestBookVsBetfair:
    def test_formulas(self):
        """back 100 @ 2.50, lay @ 2.20, c 5%.

        lay = 100 × 1.5 / 2.15 = 69.77
        liability = 69.767 × 1.2 = 83.72
        back wins = 150 − 83.72 = 66.28
        lay wins = 69.767 × 0.95 − 100 = −33.72
        """
        plan = for_book_vs_betfair(_back_lay(), 100.0)
        assert plan.back_stake == 100.0
        assert plan.lay_stake == pytest.approx(69.77)
        assert plan.lay_liability == pytest.approx(83.72)
        assert plan.profit_if_back_wins == pytest.approx(66.28)
        assert plan.profit_if_lay_wins == pytest.approx(-33.72)
        assert plan.guaranteed_profit == pytest.approx(-33.72)
        assert plan.commission == 0.05
        # profit % is relative to total outlay (100 + 83.72)
        assert plan.profit_pct == pytest.approx(-18.35, abs=0.01)
        assert plan.total_outlay == pytest.approx(183.72)

    def test_commission_override(self):
        plan = for_book_vs_betfair(_back_lay(), 100.0, commission=0.02)
        assert plan.commission == 0.02
        assert plan.lay_stake == pytest.approx(round(150 / 2.18, 2))

    def test_from_total_inverse(self):
        """Solving back from outlay then recomputing gives the same outlay."""
        opp = _back_lay()
        plan = for_book_vs_betfair_from_total(opp, 500.0)
        assert plan.back_stake + plan.lay_liability == pytest.approx(500.0, abs=0.02)
        direct = for_book_vs_betfair(opp, plan.back_stake)
        assert direct.lay_stake == pytest.approx(plan.lay_stake, abs=0.01)

    def test_rejects_bad_inputs(self):
        opp = _back_lay()
        with pytest.raises(ValueError):
            for_book_vs_betfair(opp, 0.0)
        with pytest.raises(ValueError):
            for_book_vs_betfair(opp, 100.0, commission=1.0)
        with pytest.raises(ValueError):
            for_book_vs_betfair_from_total(opp, -5.0)

    def test_rejects_degenerate_lay(self):
        opp = BackLayArb(
            event=_back_lay().event,
            back=Leg("Los Angeles Lakers", "bet365", "Bet365", 2.5, NOW),
            lay_price=1.0,
            liquidity=0.0,
            commission=0.05,
            profit_pct=0.0,
        )
        with pytest.raises(ValueError):
            for_book_vs_betfair(opp, 100.0)


# ---------------------------------------------------------------------------
# Middles / value bets / user stakes
# ---------------------------------------------------------------------------


class TestMiddlePlan:
    def test_equal_split(self):
        """$200 on −3.5 @ 2.00 / +6.5 @ 2.00: hits +200, misses 0."""
        event = build_event({
            "bet365": {"spreads": [("Los Angeles Lakers", 2.00, -3.5), ("Boston Celtics", 1.80, 3.5)]},
            "pinnacle": {"spreads": [("Los Angeles Lakers", 1.70, -6.5), ("Boston Celtics", 2.00, 6.5)]},
        })
        middle = detect_spreads(event).middles[0]
        plan = for_middle(middle, 200.0)
        assert plan.stakes == (100.0, 100.0)
        assert plan.returns == (200.0, 200.0)
        assert plan.profit_if_hits == 200.0
        assert plan.worst_case == 0.0

    def test_totals_worst_case(self):
        event = build_event({
            "bet365": {"totals": [("Over", 1.95, 218.5), ("Under", 1.80, 218.5)]},
            "pinnacle": {"totals": [("Over", 1.80, 220.5), ("Under", 1.95, 220.5)]},
        })
        middle = detect_totals(event).middles[0]
        plan = for_middle(middle, 100.0)
        assert plan.worst_case == pytest.approx(-2.5)
        with pytest.raises(ValueError):
            for_middle(middle, 0.0)


class TestValueBetPlan:
    def test_scenario_d(self):
        """$100 @ 2.50, fair p = 1/1.9833 = 50.42%: EV = 100 × (2.5 × 0.5042 − 1) = 26.05."""
        event = build_event({
            "bet365": {"h2h": [("Los Angeles Lakers", 2.50), ("Boston Celtics", 1.80)]},
            "pinnacle": {"h2h": [("Los Angeles Lakers", 2.05), ("Boston Celtics", 1.82)]},
            "williamhill": {"h2h": [("Los Angeles Lakers", 2.00), ("Boston Celtics", 1.85)]},
            "unibet": {"h2h": [("Los Angeles Lakers", 1.90), ("Boston Celtics", 1.83)]},
        })
        plan = for_value_bet(detect_value_bets(event)[0], 100.0)
        assert plan.potential_return == 250.0
        assert plan.potential_profit == 150.0
        assert plan.implied_probability_pct == 40.0
        assert plan.fair_probability_pct == pytest.approx(50.42)
        assert plan.expected_value == pytest.approx(26.05)
        assert plan.expected_value_pct == pytest.approx(26.05)


class TestEvaluateStakes:
    def test_user_edited_stakes(self):
        """2.15 / 1.92 with 50 / 50: returns 107.5 / 96 → worst −4."""
        ev = evaluate_stakes([2.15, 1.92], [50.0, 50.0])
        assert ev.total_stake == 100.0
        assert ev.returns == (107.5, 96.0)
        assert ev.profits == (7.5, -4.0)
        assert ev.worst_case_profit == -4.0
        assert ev.profit_pct == -4.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            evaluate_stakes([2.0, 2.0], [10.0])

    def test_negative_stake(self):
        with pytest.raises(ValueError):
            evaluate_stakes([2.0, 2.0], [10.0, -1.0])

    def test_zero_total(self):
        with pytest.raises(ValueError):
            evaluate_stakes([2.0, 2.0], [0.0, 0.0])


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateArbitrage:
    def test_still_valid(self):
        result = validate_arbitrage(2.15, 1.92)
        assert result.is_valid
        assert result.profit_pct == pytest.approx(1.43)
        assert result.implied_sum == pytest.approx(0.9859)

    def test_moved_odds(self):
        result = validate_arbitrage(2.00, 1.90)
        assert not result.is_valid
        assert result.profit_pct == 0.0

    def test_boundary_not_valid(self):
        """implied sum exactly 1.00 → nothing to gain by placing."""
        assert not validate_arbitrage(2.00, 2.00).is_valid

    def test_break_even_detected_but_not_confirmed(self):
        """2.00 / 2.00: detector → ARB at 0%, validation → invalid, profit 0, implied 1.0."""
        event = build_event({
            "bet365": {"h2h": [("Los Angeles Lakers", 2.00), ("Boston Celtics", 1.80)]},
            "pinnacle": {"h2h": [("Los Angeles Lakers", 1.80), ("Boston Celtics", 2.00)]},
        })
        opp = detect_moneyline(event)
        assert opp.arb_type is ArbType.ARB
        assert opp.profit_pct == pytest.approx(0.0)

        result = validate_arbitrage(*(leg.price for leg in opp.legs))
        assert not result.is_valid
        assert result.profit_pct == 0.0
        assert result.implied_sum == pytest.approx(1.0)

    def test_three_way(self):
        assert validate_arbitrage(2.50, 3.80, 4.20).is_valid

    def test_rejects_degenerate(self):
        with pytest.raises(ValueError):
            validate_arbitrage(2.0, 1.0)
        with pytest.raises(ValueError):
            validate_arbitrage(2.0)


class TestValidateBetfairArbitrage:
    def test_valid(self):
        result = validate_betfair_arbitrage(2.50, 2.20, 0.05)
        assert result.is_valid
        assert result.profit_pct == pytest.approx(14.4)
        assert result.implied_sum is None

    def test_invalid(self):
        result = validate_betfair_arbitrage(2.00, 2.40)
        assert not result.is_valid
        assert result.profit_pct == 0.0
