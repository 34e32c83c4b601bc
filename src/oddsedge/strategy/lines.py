"""Point spread and totals detection: same-line arbs and cross-line middles.

Spreads:
    Quotes are grouped by |point|, then by team. A line is arbitrageable
    when exactly two teams sit on opposite signs of it. A middle takes
    the favorite at a LOW line and the underdog at a HIGH line; if the
    favorite wins by a margin between the two, both bets win.

Totals:
    Over/Under per line. A middle takes Over at the low line and Under
    at the high line; a final total strictly between them wins both.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from oddsedge.config import (
    DEFAULT_MIDDLE_EV_FLOOR,
    DEFAULT_MIDDLE_LEG_STAKE,
    DEFAULT_MIDDLE_LOSS_CEILING,
    DEFAULT_NAME_MATCH_THRESHOLD,
    DEFAULT_NEAR_ARB_THRESHOLD,
)
from oddsedge.models.event import SPREADS, TOTALS, NormalizedEvent, OddsQuote, SportEvent
from oddsedge.models.issue import IssueKind, ScanIssue, note_issue
from oddsedge.models.opportunity import (
    Leg,
    MiddleOpportunity,
    SpreadArb,
    TotalsArb,
    classify_profit,
    profit_pct_from_implied,
)
from oddsedge.normalization.event_matcher import normalize_event
from oddsedge.normalization.outcomes import canonicalize_outcomes
from oddsedge.strategy.middle_model import LinearMiddleModel, MiddleProbabilityModel
from oddsedge.strategy.moneyline import best_quote, collect_market_quotes

logger = logging.getLogger(__name__)

SPREADS_DETECTOR = "spreads"
TOTALS_DETECTOR = "totals"

MIN_SPREAD_MIDDLE_GAP = 1.0
MIN_TOTALS_MIDDLE_GAP = 0.5


@dataclass
class MiddleFilter:
    """Middle 산출 파라미터.

    Args:
        leg_stake: leg당 가정 스테이크 (기본 $100).
        ev_floor: EV가 이 값보다 크면 유지.
        loss_ceiling: 미적중 손실이 이 값보다 작으면 유지.
    """

    leg_stake: float = DEFAULT_MIDDLE_LEG_STAKE
    ev_floor: float = DEFAULT_MIDDLE_EV_FLOOR
    loss_ceiling: float = DEFAULT_MIDDLE_LOSS_CEILING

    def keep(self, expected_value: float, loss_if_misses: float) -> bool:
        return expected_value > self.ev_floor or loss_if_misses < self.loss_ceiling


@dataclass
class LineResult:
    """One market family's output for one event."""

    arbs: list = field(default_factory=list)
    middles: list[MiddleOpportunity] = field(default_factory=list)


def middle_economics(
    price1: float,
    price2: float,
    probability_pct: float,
    leg_stake: float,
) -> tuple[float, float, float]:
    """(profit_if_hits, loss_if_misses, expected_value) for equal stakes.

    profit_if_hits = Σ stake·price − total
    loss_if_misses = total − max(stake·price)
    EV = p·profit − (1 − p)·loss
    """
    total = leg_stake * 2
    returns = (leg_stake * price1, leg_stake * price2)
    profit_if_hits = sum(returns) - total
    loss_if_misses = total - max(returns)
    p = probability_pct / 100.0
    expected_value = p * profit_if_hits - (1 - p) * loss_if_misses
    return profit_if_hits, loss_if_misses, expected_value


def _format_line(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Spreads
# ---------------------------------------------------------------------------


def detect_spreads(
    event: SportEvent,
    normalized: NormalizedEvent | None = None,
    near_arb_threshold: float = DEFAULT_NEAR_ARB_THRESHOLD,
    model: MiddleProbabilityModel | None = None,
    middle_filter: MiddleFilter | None = None,
    name_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
    issues: list[ScanIssue] | None = None,
) -> LineResult:
    """Spread arbs + spread middles for one event."""
    model = model or LinearMiddleModel()
    middle_filter = middle_filter or MiddleFilter()
    quotes, n_books = collect_market_quotes(event, SPREADS, SPREADS_DETECTOR, issues)
    result = LineResult()
    if n_books < 2:
        if n_books == 1:
            note_issue(issues, event.id, SPREADS_DETECTOR, IssueKind.INSUFFICIENT_DATA,
                       "fewer than 2 bookmakers quote spreads")
        return result

    normalized = normalized or normalize_event(event)

    # 팀 이름 정규화 (북메이커별 표기 차이 흡수)
    outcomes = canonicalize_outcomes(
        dict.fromkeys(q.outcome_name for q in quotes), name_threshold,
    )
    team_of: dict[str, str] = {}
    display: dict[str, str] = {}
    for outcome in outcomes:
        display[outcome.key] = outcome.display_name
        for spelling in outcome.spellings:
            team_of[spelling] = outcome.key

    # line(|point|) → team → quotes
    by_line: dict[float, dict[str, list[OddsQuote]]] = defaultdict(lambda: defaultdict(list))
    for quote in quotes:
        if quote.point is None:
            note_issue(issues, event.id, SPREADS_DETECTOR, IssueKind.MALFORMED_INPUT,
                       f"{quote.bookmaker_key}: spread outcome {quote.outcome_name!r} has no point")
            continue
        if quote.is_degenerate:
            continue
        by_line[abs(quote.point)][team_of[quote.outcome_name]].append(quote)

    # Same-line arbs
    for line, teams in by_line.items():
        if len(teams) != 2:
            continue
        arb = _best_orientation(teams)
        if arb is None:
            continue
        (fav_team, fav_quote), (dog_team, dog_quote) = arb

        implied_sum = 1.0 / fav_quote.price + 1.0 / dog_quote.price
        profit_pct = profit_pct_from_implied(implied_sum)
        arb_type = classify_profit(profit_pct, near_arb_threshold)
        if arb_type is None:
            continue

        favorite = Leg.from_quote(fav_quote, display[fav_team])
        underdog = Leg.from_quote(dog_quote, display[dog_team])

        result.arbs.append(
            SpreadArb(
                event=normalized,
                arb_type=arb_type,
                line=line,
                favorite=favorite,
                underdog=underdog,
                implied_sum=implied_sum,
                profit_pct=profit_pct,
            )
        )

    # Middles: favorite @ low line, underdog @ high line
    lines = sorted(by_line)
    for i, low in enumerate(lines):
        for high in lines[i + 1:]:
            if high - low < MIN_SPREAD_MIDDLE_GAP:
                continue
            middle = _spread_middle(
                event, normalized, by_line[low], by_line[high], low, high,
                display, model, middle_filter,
            )
            if middle is not None:
                result.middles.append(middle)

    result.arbs.sort(key=lambda a: a.profit_pct, reverse=True)
    result.middles.sort(key=lambda m: m.expected_value, reverse=True)
    return result


def _best_orientation(
    teams: dict[str, list[OddsQuote]],
) -> Optional[tuple[tuple[str, OddsQuote], tuple[str, OddsQuote]]]:
    """((favorite team, quote), (underdog team, quote)) with the lower implied sum.

    Bookmakers can disagree on who is favored at a line, so both
    orientations are tried. Pick'em (point 0) has no sides.
    """
    (team1, quotes1), (team2, quotes2) = teams.items()
    best = None
    best_sum = None
    for (fav_team, fav_qs), (dog_team, dog_qs) in (
        ((team1, quotes1), (team2, quotes2)),
        ((team2, quotes2), (team1, quotes1)),
    ):
        fav = best_quote([q for q in fav_qs if q.point < 0])
        dog = best_quote([q for q in dog_qs if q.point > 0])
        if fav is None or dog is None:
            continue
        implied_sum = 1.0 / fav.price + 1.0 / dog.price
        if best_sum is None or implied_sum < best_sum:
            best = ((fav_team, fav), (dog_team, dog))
            best_sum = implied_sum
    return best


def _spread_middle(
    event: SportEvent,
    normalized: NormalizedEvent,
    low_teams: dict[str, list[OddsQuote]],
    high_teams: dict[str, list[OddsQuote]],
    low: float,
    high: float,
    display: dict[str, str],
    model: MiddleProbabilityModel,
    middle_filter: MiddleFilter,
) -> Optional[MiddleOpportunity]:
    """Best middle between two lines.

    Bookmakers can disagree on who is favored at the low line, so every
    team with a favorite quote there is paired with the other team's
    best underdog quote at the high line; the pairing with the highest
    EV is kept.
    """
    middle_size = high - low
    probability: Optional[float] = None
    best = None

    for fav_team, qs in low_teams.items():
        fav_quote = best_quote([q for q in qs if q.point < 0])
        if fav_quote is None:
            continue
        # 반대 팀의 underdog만 (같은 팀 양쪽 베팅은 middle이 아님)
        dog_candidates = [
            (team, q) for team, dog_qs in high_teams.items() if team != fav_team
            for q in dog_qs if q.point > 0
        ]
        if not dog_candidates:
            continue
        dog_team, dog_quote = max(dog_candidates, key=lambda tq: tq[1].price)

        if probability is None:
            probability = model.probability(event.sport_key, SPREADS, middle_size)
        economics = middle_economics(
            fav_quote.price, dog_quote.price, probability, middle_filter.leg_stake,
        )
        if best is None or economics[2] > best[4][2]:
            best = (fav_team, fav_quote, dog_team, dog_quote, economics)

    if best is None:
        return None
    fav_team, fav_quote, dog_team, dog_quote, (profit_if_hits, loss_if_misses, ev) = best
    if not middle_filter.keep(ev, loss_if_misses):
        return None

    fav_name = display[fav_team]
    return MiddleOpportunity(
        event=normalized,
        market_type=SPREADS,
        side1=Leg.from_quote(fav_quote, fav_name),
        side2=Leg.from_quote(dog_quote, display[dog_team]),
        low=low,
        high=high,
        description=(
            f"{fav_name} wins by more than {_format_line(low)} "
            f"and less than {_format_line(high)}"
        ),
        middle_size=middle_size,
        probability_pct=probability,
        leg_stake=middle_filter.leg_stake,
        profit_if_hits=profit_if_hits,
        loss_if_misses=loss_if_misses,
        expected_value=ev,
    )


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


def totals_side(outcome_name: str) -> Optional[str]:
    """"Over"/"Under" 판별 (대소문자 무시). 둘 다 아니면 None."""
    lowered = outcome_name.lower()
    if "over" in lowered:
        return "over"
    if "under" in lowered:
        return "under"
    return None


def detect_totals(
    event: SportEvent,
    normalized: NormalizedEvent | None = None,
    near_arb_threshold: float = DEFAULT_NEAR_ARB_THRESHOLD,
    model: MiddleProbabilityModel | None = None,
    middle_filter: MiddleFilter | None = None,
    issues: list[ScanIssue] | None = None,
) -> LineResult:
    """Totals arbs + totals middles for one event."""
    model = model or LinearMiddleModel()
    middle_filter = middle_filter or MiddleFilter()
    quotes, n_books = collect_market_quotes(event, TOTALS, TOTALS_DETECTOR, issues)
    result = LineResult()
    if n_books < 2:
        if n_books == 1:
            note_issue(issues, event.id, TOTALS_DETECTOR, IssueKind.INSUFFICIENT_DATA,
                       "fewer than 2 bookmakers quote totals")
        return result

    normalized = normalized or normalize_event(event)

    # line → {"over": [...], "under": [...]}
    by_line: dict[float, dict[str, list[OddsQuote]]] = defaultdict(
        lambda: {"over": [], "under": []}
    )
    for quote in quotes:
        side = totals_side(quote.outcome_name)
        if side is None:
            note_issue(issues, event.id, TOTALS_DETECTOR, IssueKind.MALFORMED_INPUT,
                       f"{quote.bookmaker_key}: totals outcome {quote.outcome_name!r} "
                       "is neither over nor under")
            continue
        if quote.point is None:
            note_issue(issues, event.id, TOTALS_DETECTOR, IssueKind.MALFORMED_INPUT,
                       f"{quote.bookmaker_key}: totals outcome {quote.outcome_name!r} has no point")
            continue
        if quote.is_degenerate:
            continue
        by_line[quote.point][side].append(quote)

    for line, sides in by_line.items():
        best_over = best_quote(sides["over"])
        best_under = best_quote(sides["under"])
        if best_over is None or best_under is None:
            continue

        implied_sum = 1.0 / best_over.price + 1.0 / best_under.price
        profit_pct = profit_pct_from_implied(implied_sum)
        arb_type = classify_profit(profit_pct, near_arb_threshold)
        if arb_type is None:
            continue

        result.arbs.append(
            TotalsArb(
                event=normalized,
                arb_type=arb_type,
                line=line,
                over=Leg.from_quote(best_over),
                under=Leg.from_quote(best_under),
                implied_sum=implied_sum,
                profit_pct=profit_pct,
            )
        )

    lines = sorted(by_line)
    for i, low in enumerate(lines):
        for high in lines[i + 1:]:
            if high - low < MIN_TOTALS_MIDDLE_GAP:
                continue
            over_low = best_quote(by_line[low]["over"])
            under_high = best_quote(by_line[high]["under"])
            if over_low is None or under_high is None:
                continue

            middle_size = high - low
            probability = model.probability(event.sport_key, TOTALS, middle_size)
            profit_if_hits, loss_if_misses, ev = middle_economics(
                over_low.price, under_high.price, probability, middle_filter.leg_stake,
            )
            if not middle_filter.keep(ev, loss_if_misses):
                continue

            result.middles.append(
                MiddleOpportunity(
                    event=normalized,
                    market_type=TOTALS,
                    side1=Leg.from_quote(over_low, f"Over {_format_line(low)}"),
                    side2=Leg.from_quote(under_high, f"Under {_format_line(high)}"),
                    low=low,
                    high=high,
                    description=(
                        f"Total lands between {_format_line(low)} and {_format_line(high)}"
                    ),
                    middle_size=middle_size,
                    probability_pct=probability,
                    leg_stake=middle_filter.leg_stake,
                    profit_if_hits=profit_if_hits,
                    loss_if_misses=loss_if_misses,
                    expected_value=ev,
                )
            )

    result.arbs.sort(key=lambda a: a.profit_pct, reverse=True)
    result.middles.sort(key=lambda m: m.expected_value, reverse=True)
    return result
