"""Book vs exchange (back/lay) arbitrage detector.

Back an outcome at a bookmaker, lay the same outcome on an exchange.
With commission c on exchange winnings:

    back return          = back - 1
    effective lay return = (lay - 1) * (1 - c)
    profit %             = (back return - effective lay) / back * 100

Lay prices are supplied by the caller; this module never fetches them.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Mapping

from oddsedge.config import DEFAULT_EXCHANGE_COMMISSION, DEFAULT_NAME_MATCH_THRESHOLD
from oddsedge.models.event import H2H, NormalizedEvent, SportEvent
from oddsedge.models.issue import IssueKind, ScanIssue, note_issue
from oddsedge.models.opportunity import BackLayArb, LayQuote, Leg
from oddsedge.normalization.event_matcher import find_matching_outcome, normalize_event

DETECTOR = "back_lay"

LayBook = Mapping[tuple[str, str], LayQuote]


def back_lay_profit_pct(back_price: float, lay_price: float, commission: float) -> float:
    """Profit % of a back/lay pair (음수면 아비트라지 아님)."""
    back_return = back_price - 1.0
    effective_lay = (lay_price - 1.0) * (1.0 - commission)
    return (back_return - effective_lay) / back_price * 100.0


def index_lay_book(lay_book: LayBook) -> dict[str, list[tuple[str, LayQuote]]]:
    """{(event_id, outcome): quote} → {event_id: [(outcome, quote), ...]}."""
    by_event: dict[str, list[tuple[str, LayQuote]]] = defaultdict(list)
    for (event_id, outcome_name), quote in lay_book.items():
        by_event[event_id].append((outcome_name, quote))
    return dict(by_event)


def detect_back_lay(
    event: SportEvent,
    lay_quotes: list[tuple[str, LayQuote]],
    normalized: NormalizedEvent | None = None,
    commission: float = DEFAULT_EXCHANGE_COMMISSION,
    name_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
    issues: list[ScanIssue] | None = None,
) -> list[BackLayArb]:
    """
    단일 이벤트의 back/lay 아비트라지 감지.

    Args:
        event: 원본 이벤트
        lay_quotes: 이 이벤트의 (outcome 이름, LayQuote) 목록
        normalized: 미리 계산된 NormalizedEvent
        commission: 거래소 수수료율 (기본 5%)
        name_threshold: 북메이커/거래소 outcome 이름 매칭 임계값
        issues: 스킵 사유 수집용 리스트

    Returns:
        profit % 내림차순 BackLayArb 리스트
    """
    if not lay_quotes:
        return []

    normalized = normalized or normalize_event(event)
    results: list[BackLayArb] = []

    for bm in event.bookmakers_with_market(H2H):
        for quote in bm.market(H2H).quotes:
            if quote.is_degenerate:
                continue
            match = find_matching_outcome(
                quote.outcome_name, lay_quotes,
                name_of=lambda pair: pair[0], threshold=name_threshold,
            )
            if match is None:
                continue
            _, lay = match
            if not lay.lay_price > 1.0:
                note_issue(issues, event.id, DETECTOR, IssueKind.NUMERIC_DEGENERATE,
                           f"lay price {lay.lay_price} for {quote.outcome_name!r}")
                continue

            profit_pct = back_lay_profit_pct(quote.price, lay.lay_price, commission)
            if profit_pct <= 0:
                continue

            results.append(
                BackLayArb(
                    event=normalized,
                    back=Leg.from_quote(quote),
                    lay_price=lay.lay_price,
                    liquidity=lay.liquidity,
                    commission=commission,
                    profit_pct=profit_pct,
                )
            )

    results.sort(key=lambda a: a.profit_pct, reverse=True)
    return results
