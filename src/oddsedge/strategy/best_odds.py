"""Per-event best-odds summary for h2h outcomes."""

from __future__ import annotations

from typing import Optional

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD
from oddsedge.models.event import NormalizedEvent, SportEvent
from oddsedge.models.opportunity import BestOdds, Leg, OutcomeBestOdds
from oddsedge.normalization.event_matcher import normalize_event
from oddsedge.normalization.outcomes import group_quotes_by_outcome
from oddsedge.strategy.moneyline import collect_h2h_quotes

DETECTOR = "best_odds"


def summarize_best_odds(
    event: SportEvent,
    normalized: NormalizedEvent | None = None,
    name_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> Optional[BestOdds]:
    """Best price + plain average (best 포함) per canonical outcome.

    Returns None when the event has no usable h2h price.
    """
    quotes, _ = collect_h2h_quotes(event, DETECTOR)
    outcomes: list[OutcomeBestOdds] = []

    for group in group_quotes_by_outcome(quotes, name_threshold):
        valid = [q for q in group.quotes if not q.is_degenerate]
        if not valid:
            continue
        name = group.outcome.display_name
        ranked = sorted(valid, key=lambda q: q.price, reverse=True)
        outcomes.append(
            OutcomeBestOdds(
                name=name,
                best=Leg.from_quote(ranked[0], name=name),
                all_prices=tuple(Leg.from_quote(q, name=name) for q in ranked),
                market_average=sum(q.price for q in ranked) / len(ranked),
            )
        )

    if not outcomes:
        return None
    return BestOdds(event=normalized or normalize_event(event), outcomes=tuple(outcomes))
