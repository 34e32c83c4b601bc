"""Tests for outcome canonicalization within one market."""

from __future__ import annotations

from oddsedge.models.event import H2H, OddsQuote
from oddsedge.normalization.outcomes import (
    DRAW_KEY,
    canonicalize_outcomes,
    group_quotes_by_outcome,
    is_draw,
)

from conftest import NOW


def _quote(book: str, name: str, price: float) -> OddsQuote:
    return OddsQuote(
        bookmaker_key=book,
        bookmaker_title=book.title(),
        outcome_name=name,
        price=price,
        market_key=H2H,
        last_update=NOW,
    )


class TestIsDraw:
    def test_aliases(self):
        assert is_draw("Draw")
        assert is_draw("tie")
        assert is_draw("X")

    def test_team_is_not_draw(self):
        assert not is_draw("Arsenal")
        assert not is_draw("Draw Town FC Reserves")


class TestCanonicalizeOutcomes:
    def test_spellings_collapse(self):
        """"Man Utd" and "Manchester United" are one outcome."""
        outcomes = canonicalize_outcomes(["Manchester United", "Draw", "Chelsea", "Man Utd"])
        assert len(outcomes) == 3
        assert outcomes[0].display_name == "Manchester United"
        assert outcomes[0].spellings == ["Manchester United", "Man Utd"]

    def test_draw_and_tie_collapse(self):
        outcomes = canonicalize_outcomes(["Draw", "Tie"])
        assert len(outcomes) == 1
        assert outcomes[0].key == DRAW_KEY

    def test_draw_never_joins_a_team(self):
        outcomes = canonicalize_outcomes(["Arsenal", "Draw"])
        assert [o.key for o in outcomes] == ["arsenal", DRAW_KEY]

    def test_first_seen_order_is_deterministic(self):
        names = ["Boston Celtics", "LA Lakers", "Los Angeles Lakers"]
        first = canonicalize_outcomes(names)
        second = canonicalize_outcomes(names)
        assert [o.key for o in first] == [o.key for o in second]
        assert first[1].display_name == "LA Lakers"

    def test_duplicate_names_recorded_once(self):
        outcomes = canonicalize_outcomes(["Arsenal", "Arsenal"])
        assert outcomes[0].spellings == ["Arsenal"]


class TestGroupQuotesByOutcome:
    def test_groups_across_bookmakers(self):
        quotes = [
            _quote("bet365", "Man Utd", 2.10),
            _quote("bet365", "Draw", 3.40),
            _quote("bet365", "Chelsea", 3.50),
            _quote("pinnacle", "Manchester United", 2.20),
            _quote("pinnacle", "Tie", 3.30),
            _quote("pinnacle", "Chelsea FC", 3.60),
        ]
        groups = group_quotes_by_outcome(quotes)
        assert len(groups) == 3
        assert [len(g.quotes) for g in groups] == [2, 2, 2]
        assert {q.bookmaker_key for q in groups[0].quotes} == {"bet365", "pinnacle"}

    def test_distinct_teams_stay_apart(self):
        quotes = [
            _quote("bet365", "Boston Celtics", 1.80),
            _quote("bet365", "Los Angeles Lakers", 2.05),
        ]
        assert len(group_quotes_by_outcome(quotes)) == 2

    def test_empty(self):
        assert group_quotes_by_outcome([]) == []
