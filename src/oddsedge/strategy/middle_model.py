"""Middle hit-probability models.

The default model is linear in middle width and sport-agnostic: an
explicit approximation. Sport-specific models can replace it without
touching the line detector, as long as they satisfy
``MiddleProbabilityModel``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from oddsedge.models.event import SPREADS, TOTALS
from oddsedge.strategy.sport_config import SportGroup, sport_group


class MiddleProbabilityModel(Protocol):
    """Returns the probability (percent, 0-100) that a middle hits."""

    def probability(self, sport_key: str, market_key: str, middle_size: float) -> float:
        ...


@dataclass(frozen=True)
class LinearCoefficients:
    """probability = min(cap_pct, size * per_point_pct)."""

    cap_pct: float
    per_point_pct: float


DEFAULT_COEFFICIENTS: dict[str, LinearCoefficients] = {
    SPREADS: LinearCoefficients(cap_pct=30.0, per_point_pct=5.0),
    TOTALS: LinearCoefficients(cap_pct=25.0, per_point_pct=8.0),
}


@dataclass
class LinearMiddleModel:
    """~5%/point on spreads (cap 30%), ~8%/point on totals (cap 25%).

    Args:
        coefficients: 마켓별 기본 계수.
        overrides: (SportGroup, market_key) 별 계수. 종목별 보정용.
    """

    coefficients: dict[str, LinearCoefficients] = field(
        default_factory=lambda: dict(DEFAULT_COEFFICIENTS)
    )
    overrides: dict[tuple[SportGroup, str], LinearCoefficients] = field(default_factory=dict)

    def coefficients_for(self, sport_key: str, market_key: str) -> LinearCoefficients:
        group = sport_group(sport_key)
        if group is not None and (group, market_key) in self.overrides:
            return self.overrides[(group, market_key)]
        return self.coefficients.get(market_key, self.coefficients[SPREADS])

    def probability(self, sport_key: str, market_key: str, middle_size: float) -> float:
        if middle_size <= 0:
            return 0.0
        coeff = self.coefficients_for(sport_key, market_key)
        return min(coeff.cap_pct, middle_size * coeff.per_point_pct)
