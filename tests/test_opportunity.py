"""Tests for opportunity models and ranking."""

from __future__ import annotations

from datetime import timedelta

import pytest

from oddsedge.models.opportunity import (
    ArbType,
    OpportunityKind,
    classify_profit,
    profit_pct_from_implied,
)
from oddsedge.strategy.moneyline import detect_moneyline
from oddsedge.strategy.opportunity import filter_by_kind, rank_opportunities, split_arbs
from oddsedge.strategy.value_bet import detect_value_bets

from conftest import NOW, build_event


def _moneyline(lakers: float, celtics: float, event_id: str = "evt_1", minutes: int = 0):
    return detect_moneyline(
        build_event(
            {
                "bet365": {"h2h": [("Los Angeles Lakers", lakers), ("Boston Celtics", 1.50)]},
                "pinnacle": {"h2h": [("Los Angeles Lakers", 1.50), ("Boston Celtics", celtics)]},
            },
            event_id=event_id,
            updates={"pinnacle": NOW + timedelta(minutes=minutes)},
        )
    )


class TestProfitHelpers:
    def test_profit_from_implied(self):
        assert profit_pct_from_implied(1.0) == pytest.approx(0.0)
        assert profit_pct_from_implied(0.8) == pytest.approx(25.0)

    def test_classify(self):
        assert classify_profit(0.0, 2.0) is ArbType.ARB
        assert classify_profit(1.5, 2.0) is ArbType.ARB
        assert classify_profit(-2.0, 2.0) is ArbType.NEAR_ARB
        assert classify_profit(-2.0001, 2.0) is None


class TestRankOpportunities:
    def test_sorted_by_metric_descending(self):
        """2.20/2.20 → 10%, 2.10/2.10 → 5%, 1.98/1.98 → -1%."""
        low = _moneyline(1.98, 1.98, "a")
        high = _moneyline(2.20, 2.20, "b")
        mid = _moneyline(2.10, 2.10, "c")
        ranked = rank_opportunities([low, high, mid])
        assert [o.event.id for o in ranked] == ["b", "c", "a"]

    def test_tie_broken_by_recency(self):
        older = _moneyline(2.10, 2.10, "old", minutes=0)
        newer = _moneyline(2.10, 2.10, "new", minutes=5)
        ranked = rank_opportunities([older, newer])
        assert [o.event.id for o in ranked] == ["new", "old"]

    def test_returns_new_list(self):
        opps = [_moneyline(1.98, 1.98, "a"), _moneyline(2.20, 2.20, "b")]
        ranked = rank_opportunities(opps)
        assert ranked is not opps
        assert [o.event.id for o in opps] == ["a", "b"]

    def test_mixed_kinds(self):
        """Value bets rank by value %, arbs by profit %, in one list."""
        arb = _moneyline(2.10, 2.10, "arb")  # 5%
        value = detect_value_bets(
            build_event(
                {
                    "bet365": {"h2h": [("Los Angeles Lakers", 2.50), ("Boston Celtics", 1.80)]},
                    "pinnacle": {"h2h": [("Los Angeles Lakers", 2.05), ("Boston Celtics", 1.82)]},
                    "williamhill": {"h2h": [("Los Angeles Lakers", 2.00), ("Boston Celtics", 1.85)]},
                    "unibet": {"h2h": [("Los Angeles Lakers", 1.90), ("Boston Celtics", 1.83)]},
                },
                event_id="value",
            )
        )[0]  # 26.05%
        ranked = rank_opportunities([arb, value])
        assert [o.kind for o in ranked] == [OpportunityKind.VALUE_BET, OpportunityKind.MONEYLINE]

    def test_empty(self):
        assert rank_opportunities([]) == []


class TestFilters:
    def test_split_arbs(self):
        arb = _moneyline(2.10, 2.10, "a")
        near = _moneyline(1.98, 1.98, "b")
        arbs, near_arbs = split_arbs([arb, near])
        assert arbs == [arb]
        assert near_arbs == [near]

    def test_filter_by_kind(self):
        arb = _moneyline(2.10, 2.10, "a")
        assert filter_by_kind([arb], OpportunityKind.MONEYLINE) == [arb]
        assert filter_by_kind([arb], OpportunityKind.MIDDLE) == []
