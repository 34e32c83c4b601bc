"""Canonical outcome keys within one market.

Bookmakers in the same event may spell an outcome differently
("Man Utd" / "Manchester United", "Draw" / "Tie"). Grouping by exact
string would inflate the outcome count and hide real arbitrage, so names
are collapsed into canonical outcomes with fuzzy matching first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD
from oddsedge.models.event import OddsQuote
from oddsedge.normalization.names import names_match, normalize_name

DRAW_KEY = "draw"
DRAW_ALIASES: frozenset[str] = frozenset({"draw", "tie", "x"})


@dataclass
class CanonicalOutcome:
    """Canonical id + display name + every source spelling seen."""

    key: str
    display_name: str
    spellings: list[str] = field(default_factory=list)

    def matches(self, name: str, threshold: float) -> bool:
        if self.key == DRAW_KEY:
            return is_draw(name)
        if is_draw(name):
            return False
        return any(names_match(name, s, threshold) for s in self.spellings)


@dataclass
class OutcomeGroup:
    """Quotes collected under one canonical outcome."""

    outcome: CanonicalOutcome
    quotes: list[OddsQuote] = field(default_factory=list)


def is_draw(name: str) -> bool:
    return normalize_name(name) in DRAW_ALIASES


def canonicalize_outcomes(
    names: Iterable[str],
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> list[CanonicalOutcome]:
    """Collapse near-duplicate names. 입력 순서 기준으로 결정적.

    Each name joins the first canonical outcome it matches, otherwise it
    founds a new one keyed by its normalized form.
    """
    outcomes: list[CanonicalOutcome] = []
    for name in names:
        target = next((o for o in outcomes if o.matches(name, threshold)), None)
        if target is None:
            key = DRAW_KEY if is_draw(name) else (normalize_name(name) or name)
            outcomes.append(CanonicalOutcome(key=key, display_name=name, spellings=[name]))
        elif name not in target.spellings:
            target.spellings.append(name)
    return outcomes


def group_quotes_by_outcome(
    quotes: Iterable[OddsQuote],
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> list[OutcomeGroup]:
    """Group quotes under canonical outcomes, preserving first-seen order."""
    quotes = list(quotes)
    # 같은 표기를 한 번만 비교하도록 먼저 이름 목록을 정리
    unique_names = list(dict.fromkeys(q.outcome_name for q in quotes))
    outcomes = canonicalize_outcomes(unique_names, threshold)

    by_spelling: dict[str, OutcomeGroup] = {}
    groups: list[OutcomeGroup] = []
    for outcome in outcomes:
        group = OutcomeGroup(outcome=outcome)
        groups.append(group)
        for spelling in outcome.spellings:
            by_spelling[spelling] = group

    for quote in quotes:
        by_spelling[quote.outcome_name].quotes.append(quote)
    return groups
