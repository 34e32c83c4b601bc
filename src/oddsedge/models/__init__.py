"""Data models for oddsedge."""

from oddsedge.models.event import (
    H2H,
    SPREADS,
    TOTALS,
    BookmakerOdds,
    MarketOdds,
    NormalizedEvent,
    OddsQuote,
    SportEvent,
)
from oddsedge.models.issue import IssueKind, ScanIssue
from oddsedge.models.opportunity import (
    ArbType,
    BackLayArb,
    BestOdds,
    LayQuote,
    Leg,
    MiddleOpportunity,
    MoneylineArb,
    Opportunity,
    OpportunityKind,
    OutcomeBestOdds,
    SpreadArb,
    TotalsArb,
    ValueBet,
)
from oddsedge.models.stake import (
    ArbValidation,
    BackLayPlan,
    MiddlePlan,
    StakeEvaluation,
    StakePlan,
    ValueBetPlan,
)

__all__ = [
    "H2H",
    "SPREADS",
    "TOTALS",
    "BookmakerOdds",
    "MarketOdds",
    "NormalizedEvent",
    "OddsQuote",
    "SportEvent",
    "IssueKind",
    "ScanIssue",
    "ArbType",
    "BackLayArb",
    "BestOdds",
    "LayQuote",
    "Leg",
    "MiddleOpportunity",
    "MoneylineArb",
    "Opportunity",
    "OpportunityKind",
    "OutcomeBestOdds",
    "SpreadArb",
    "TotalsArb",
    "ValueBet",
    "ArbValidation",
    "BackLayPlan",
    "MiddlePlan",
    "StakeEvaluation",
    "StakePlan",
    "ValueBetPlan",
]
