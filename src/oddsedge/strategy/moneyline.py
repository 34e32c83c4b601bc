"""Moneyline (h2h) arbitrage detector — 2-way and 3-way.

An arb exists when Σ 1/best_price < 1 across every outcome.
profit % = (1 / implied_sum - 1) * 100. Only the single best price per
outcome matters.
"""

from __future__ import annotations

import logging
from typing import Optional

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD, DEFAULT_NEAR_ARB_THRESHOLD
from oddsedge.models.event import H2H, NormalizedEvent, OddsQuote, SportEvent
from oddsedge.models.issue import IssueKind, ScanIssue, note_issue
from oddsedge.models.opportunity import (
    Leg,
    MoneylineArb,
    classify_profit,
    profit_pct_from_implied,
)
from oddsedge.normalization.event_matcher import normalize_event
from oddsedge.normalization.outcomes import group_quotes_by_outcome
from oddsedge.strategy.sport_config import market_arity

logger = logging.getLogger(__name__)

DETECTOR = "moneyline"


def best_quote(quotes: list[OddsQuote]) -> Optional[OddsQuote]:
    """가장 높은 유효 가격. 동률이면 먼저 나온 것."""
    best: Optional[OddsQuote] = None
    for quote in quotes:
        if quote.is_degenerate:
            continue
        if best is None or quote.price > best.price:
            best = quote
    return best


def collect_market_quotes(
    event: SportEvent,
    market_key: str,
    detector: str,
    issues: list[ScanIssue] | None = None,
) -> tuple[list[OddsQuote], int]:
    """All quotes of one market + number of bookmakers with a non-empty one.

    An empty market is MALFORMED_INPUT: skipped, the rest still counts.
    """
    quotes: list[OddsQuote] = []
    n_books = 0
    for bm in event.bookmakers_with_market(market_key):
        market = bm.market(market_key)
        if not market.quotes:
            note_issue(issues, event.id, detector, IssueKind.MALFORMED_INPUT,
                       f"{bm.key}: empty {market_key} market")
            continue
        n_books += 1
        quotes.extend(market.quotes)
    return quotes, n_books


def collect_h2h_quotes(
    event: SportEvent,
    detector: str,
    issues: list[ScanIssue] | None = None,
) -> tuple[list[OddsQuote], int]:
    return collect_market_quotes(event, H2H, detector, issues)


def detect_moneyline(
    event: SportEvent,
    normalized: NormalizedEvent | None = None,
    near_arb_threshold: float = DEFAULT_NEAR_ARB_THRESHOLD,
    name_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
    issues: list[ScanIssue] | None = None,
) -> Optional[MoneylineArb]:
    """
    단일 이벤트의 h2h 아비트라지/니어-아브 감지.

    Args:
        event: 원본 이벤트
        normalized: 미리 계산된 NormalizedEvent (없으면 계산)
        near_arb_threshold: near-arb 허용 손실 % (기본 2)
        name_threshold: 아웃컴 이름 fuzzy 매칭 임계값
        issues: 스킵 사유 수집용 리스트

    Returns:
        MoneylineArb if found, None otherwise
    """
    quotes, n_books = collect_h2h_quotes(event, DETECTOR, issues)
    if n_books < 2:
        if n_books == 1:
            note_issue(issues, event.id, DETECTOR, IssueKind.INSUFFICIENT_DATA,
                       "fewer than 2 bookmakers quote h2h")
        return None

    groups = group_quotes_by_outcome(quotes, name_threshold)
    arity = market_arity(event.sport_key)
    if not arity.accepts(len(groups)):
        logger.debug(
            "Skipping %s vs %s (%s): %d outcomes, needs %s",
            event.home_team, event.away_team, event.sport_key,
            len(groups), arity.outcome_counts,
        )
        note_issue(issues, event.id, DETECTOR, IssueKind.ARITY_MISMATCH,
                   f"{len(groups)} outcomes, {arity.value} requires {arity.outcome_counts}")
        return None

    legs: list[Leg] = []
    spellings: list[tuple[str, ...]] = []
    for group in groups:
        best = best_quote(group.quotes)
        if best is None:
            note_issue(issues, event.id, DETECTOR, IssueKind.NUMERIC_DEGENERATE,
                       f"no valid price for {group.outcome.display_name!r}")
            return None
        legs.append(Leg.from_quote(best, name=group.outcome.display_name))
        spellings.append(tuple(group.outcome.spellings))

    implied_sum = sum(1.0 / leg.price for leg in legs)
    profit_pct = profit_pct_from_implied(implied_sum)

    arb_type = classify_profit(profit_pct, near_arb_threshold)
    if arb_type is None:
        return None

    return MoneylineArb(
        event=normalized or normalize_event(event),
        arb_type=arb_type,
        market_type=H2H if len(legs) == 2 else "h2h_3way",
        legs=tuple(legs),
        implied_sum=implied_sum,
        profit_pct=profit_pct,
        spellings=tuple(spellings),
    )
