"""Value bet detector.

A value bet is a price well above what the rest of the market offers on
the same outcome. The candidate is excluded from the average so it
cannot skew its own benchmark.
"""

from __future__ import annotations

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD, DEFAULT_VALUE_THRESHOLD
from oddsedge.models.event import H2H, NormalizedEvent, OddsQuote, SportEvent
from oddsedge.models.issue import IssueKind, ScanIssue, note_issue
from oddsedge.models.opportunity import Leg, ValueBet
from oddsedge.normalization.event_matcher import normalize_event
from oddsedge.normalization.outcomes import group_quotes_by_outcome
from oddsedge.strategy.moneyline import collect_h2h_quotes

DETECTOR = "value_bet"
MIN_BOOKMAKERS = 3


def best_per_bookmaker(quotes: list[OddsQuote]) -> list[OddsQuote]:
    """북메이커당 최고 유효 가격 하나씩. 입력 순서 유지."""
    best: dict[str, OddsQuote] = {}
    for quote in quotes:
        if quote.is_degenerate:
            continue
        current = best.get(quote.bookmaker_key)
        if current is None or quote.price > current.price:
            best[quote.bookmaker_key] = quote
    return list(best.values())


def value_pct(best_price: float, others: list[float]) -> float:
    """(best - mean(others)) / mean(others) * 100."""
    average = sum(others) / len(others)
    return (best_price - average) / average * 100.0


def detect_value_bets(
    event: SportEvent,
    normalized: NormalizedEvent | None = None,
    value_threshold: float = DEFAULT_VALUE_THRESHOLD,
    name_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
    issues: list[ScanIssue] | None = None,
) -> list[ValueBet]:
    """Value bets in one event's h2h market, sorted by value % descending."""
    quotes, n_books = collect_h2h_quotes(event, DETECTOR, issues)
    if n_books < MIN_BOOKMAKERS:
        if n_books > 0:
            note_issue(issues, event.id, DETECTOR, IssueKind.INSUFFICIENT_DATA,
                       f"{n_books} bookmakers quote h2h, need {MIN_BOOKMAKERS}")
        return []

    normalized = normalized or normalize_event(event)
    results: list[ValueBet] = []

    for group in group_quotes_by_outcome(quotes, name_threshold):
        per_book = best_per_bookmaker(group.quotes)
        if len(per_book) < MIN_BOOKMAKERS:
            continue

        ranked = sorted(per_book, key=lambda q: q.price, reverse=True)
        best, rest = ranked[0], ranked[1:]
        rest_prices = [q.price for q in rest]
        pct = value_pct(best.price, rest_prices)
        if pct < value_threshold:
            continue

        name = group.outcome.display_name
        results.append(
            ValueBet(
                event=normalized,
                market_type=H2H,
                leg=Leg.from_quote(best, name=name),
                market_average=sum(rest_prices) / len(rest_prices),
                value_pct=pct,
                all_prices=tuple(Leg.from_quote(q, name=name) for q in ranked),
            )
        )

    results.sort(key=lambda v: v.value_pct, reverse=True)
    return results
