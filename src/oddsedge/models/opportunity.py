"""Opportunity data models (moneyline, value bet, spread, totals, middle, back/lay)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from oddsedge.models.event import NormalizedEvent, OddsQuote


class OpportunityKind(Enum):
    """기회 유형 (tagged union 태그)."""

    MONEYLINE = "moneyline"
    VALUE_BET = "value_bet"
    SPREAD = "spread"
    TOTALS = "totals"
    MIDDLE = "middle"
    BACK_LAY = "back_lay"


class ArbType(Enum):
    """수익성 분류."""

    ARB = "arb"              # profit % ≥ 0
    NEAR_ARB = "near_arb"    # -threshold ≤ profit % < 0
    VALUE_BET = "value_bet"
    MIDDLE = "middle"


def profit_pct_from_implied(implied_sum: float) -> float:
    """implied sum → profit % = (1/sum - 1) * 100."""
    return (1.0 / implied_sum - 1.0) * 100.0


def classify_profit(profit_pct: float, near_arb_threshold: float) -> Optional[ArbType]:
    """ARB / NEAR_ARB 분류. threshold 밖이면 None.

    Both boundaries are inclusive: profit 0 is an arb and profit exactly
    -threshold is still a near-arb.
    """
    if profit_pct >= 0:
        return ArbType.ARB
    if profit_pct >= -near_arb_threshold:
        return ArbType.NEAR_ARB
    return None


@dataclass(frozen=True)
class Leg:
    """One side of an opportunity: one outcome at one bookmaker."""

    name: str
    bookmaker_key: str
    bookmaker_title: str
    price: float
    last_update: datetime
    point: Optional[float] = None

    @classmethod
    def from_quote(cls, quote: OddsQuote, name: Optional[str] = None) -> Leg:
        return cls(
            name=name if name is not None else quote.outcome_name,
            bookmaker_key=quote.bookmaker_key,
            bookmaker_title=quote.bookmaker_title,
            price=quote.price,
            last_update=quote.last_update,
            point=quote.point,
        )


class _LegsMixin:
    @property
    def last_updated(self) -> datetime:
        """가장 최근 leg 타임스탬프."""
        return max(leg.last_update for leg in self.legs)


@dataclass(frozen=True)
class MoneylineArb(_LegsMixin):
    """2-way or 3-way h2h arbitrage / near-arb."""

    event: NormalizedEvent
    arb_type: ArbType
    market_type: str          # "h2h" | "h2h_3way"
    legs: tuple[Leg, ...]
    implied_sum: float
    profit_pct: float
    spellings: tuple[tuple[str, ...], ...] = ()  # leg별 원본 표기

    kind = OpportunityKind.MONEYLINE

    @property
    def metric(self) -> float:
        return self.profit_pct


@dataclass(frozen=True)
class ValueBet(_LegsMixin):
    """A price well above the average of the other bookmakers."""

    event: NormalizedEvent
    market_type: str
    leg: Leg
    market_average: float
    value_pct: float
    all_prices: tuple[Leg, ...]  # price 내림차순

    kind = OpportunityKind.VALUE_BET
    arb_type = ArbType.VALUE_BET

    @property
    def legs(self) -> tuple[Leg, ...]:
        return (self.leg,)

    @property
    def metric(self) -> float:
        return self.value_pct


@dataclass(frozen=True)
class SpreadArb(_LegsMixin):
    """Same-line point spread arbitrage (favorite vs underdog)."""

    event: NormalizedEvent
    arb_type: ArbType
    line: float               # |point|
    favorite: Leg             # point < 0
    underdog: Leg             # point > 0
    implied_sum: float
    profit_pct: float

    kind = OpportunityKind.SPREAD
    market_type = "spreads"

    @property
    def legs(self) -> tuple[Leg, ...]:
        return (self.favorite, self.underdog)

    @property
    def metric(self) -> float:
        return self.profit_pct


@dataclass(frozen=True)
class TotalsArb(_LegsMixin):
    """Same-line over/under arbitrage."""

    event: NormalizedEvent
    arb_type: ArbType
    line: float
    over: Leg
    under: Leg
    implied_sum: float
    profit_pct: float

    kind = OpportunityKind.TOTALS
    market_type = "totals"

    @property
    def legs(self) -> tuple[Leg, ...]:
        return (self.over, self.under)

    @property
    def metric(self) -> float:
        return self.profit_pct


@dataclass(frozen=True)
class MiddleOpportunity(_LegsMixin):
    """Bets on two different lines with a win-win range between them.

    Money figures assume ``leg_stake`` on each side.
    """

    event: NormalizedEvent
    market_type: str          # "spreads" | "totals"
    side1: Leg                # favorite @ low line / over @ low line
    side2: Leg                # underdog @ high line / under @ high line
    low: float
    high: float
    description: str
    middle_size: float
    probability_pct: float
    leg_stake: float
    profit_if_hits: float
    loss_if_misses: float
    expected_value: float

    kind = OpportunityKind.MIDDLE
    arb_type = ArbType.MIDDLE

    @property
    def legs(self) -> tuple[Leg, ...]:
        return (self.side1, self.side2)

    @property
    def metric(self) -> float:
        return self.expected_value


@dataclass(frozen=True)
class LayQuote:
    """Exchange lay price supplied by the caller."""

    lay_price: float
    liquidity: float = 0.0


@dataclass(frozen=True)
class BackLayArb(_LegsMixin):
    """Back at a bookmaker, lay the same outcome on an exchange."""

    event: NormalizedEvent
    back: Leg
    lay_price: float
    liquidity: float
    commission: float
    profit_pct: float

    kind = OpportunityKind.BACK_LAY
    arb_type = ArbType.ARB
    market_type = "h2h"

    @property
    def legs(self) -> tuple[Leg, ...]:
        return (self.back,)

    @property
    def metric(self) -> float:
        return self.profit_pct


@dataclass(frozen=True)
class OutcomeBestOdds:
    """Best price and consensus for one h2h outcome."""

    name: str
    best: Leg
    all_prices: tuple[Leg, ...]
    market_average: float


@dataclass(frozen=True)
class BestOdds:
    """Per-event best-odds summary."""

    event: NormalizedEvent
    outcomes: tuple[OutcomeBestOdds, ...]


Opportunity = Union[MoneylineArb, ValueBet, SpreadArb, TotalsArb, MiddleOpportunity, BackLayArb]
