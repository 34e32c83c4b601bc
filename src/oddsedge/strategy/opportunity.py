"""Opportunity ranking utilities."""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from oddsedge.models.opportunity import ArbType, Opportunity, OpportunityKind

T = TypeVar("T")


def rank_opportunities(opportunities: Iterable[T]) -> list[T]:
    """기회를 metric 내림차순, 최신 업데이트 우선으로 정렬.

    metric = profit % (arbs / near-arbs / back-lay), value % (value bets)
    or EV (middles). Returns new list (원본 불변).
    """
    return sorted(
        opportunities,
        key=lambda o: (o.metric, o.last_updated),
        reverse=True,
    )


def filter_by_kind(
    opportunities: Sequence[Opportunity],
    kind: OpportunityKind,
) -> list[Opportunity]:
    return [o for o in opportunities if o.kind is kind]


def split_arbs(
    opportunities: Sequence[Opportunity],
) -> tuple[list[Opportunity], list[Opportunity]]:
    """(arbs, near-arbs). 다른 유형은 버림."""
    arbs = [o for o in opportunities if o.arb_type is ArbType.ARB]
    near = [o for o in opportunities if o.arb_type is ArbType.NEAR_ARB]
    return arbs, near
