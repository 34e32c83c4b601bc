"""Sport taxonomy: how many h2h outcomes each sport group must have.

Each sport group has a SportProfile with its market arity. Lookup is by
the sport-key prefix before the first underscore ("basketball_nba" →
BASKETBALL); adding a sport means adding one explicit table entry.
Unmapped groups fall back to the soccer rule (exactly three outcomes).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SportGroup(Enum):
    """The Odds API sport group prefixes."""

    TENNIS = "tennis"
    BASKETBALL = "basketball"
    BASEBALL = "baseball"
    AMERICAN_FOOTBALL = "americanfootball"
    AUSSIE_RULES = "aussierules"
    ICE_HOCKEY = "icehockey"
    MMA = "mma"
    BOXING = "boxing"
    CRICKET = "cricket"
    RUGBY_LEAGUE = "rugbyleague"
    RUGBY_UNION = "rugbyunion"
    SOCCER = "soccer"


class MarketArity(Enum):
    """h2h 아웃컴 수 규칙."""

    TWO_WAY = "two_way"        # 무승부 구조적으로 불가능
    FLEXIBLE = "flexible"      # 2-way 또는 3-way
    THREE_WAY = "three_way"    # Home/Draw/Away 필수

    @property
    def outcome_counts(self) -> tuple[int, ...]:
        return _OUTCOME_COUNTS[self]

    def accepts(self, n_outcomes: int) -> bool:
        return n_outcomes in self.outcome_counts


_OUTCOME_COUNTS: dict[MarketArity, tuple[int, ...]] = {
    MarketArity.TWO_WAY: (2,),
    MarketArity.FLEXIBLE: (2, 3),
    MarketArity.THREE_WAY: (3,),
}


@dataclass(frozen=True)
class SportProfile:
    """Per-sport-group configuration."""

    group: SportGroup
    display_name: str
    arity: MarketArity


# =============================================================================
# Sport Constants
# =============================================================================

ALL_SPORT_PROFILES: list[SportProfile] = [
    # Always two-way
    SportProfile(SportGroup.TENNIS, "Tennis", MarketArity.TWO_WAY),
    SportProfile(SportGroup.BASKETBALL, "Basketball", MarketArity.TWO_WAY),
    SportProfile(SportGroup.BASEBALL, "Baseball", MarketArity.TWO_WAY),
    SportProfile(SportGroup.AMERICAN_FOOTBALL, "American Football", MarketArity.TWO_WAY),
    SportProfile(SportGroup.AUSSIE_RULES, "Aussie Rules", MarketArity.TWO_WAY),
    # Flexible: regulation-time 3-way or 2-way with OT / no-draw
    SportProfile(SportGroup.ICE_HOCKEY, "Ice Hockey", MarketArity.FLEXIBLE),
    SportProfile(SportGroup.MMA, "MMA", MarketArity.FLEXIBLE),
    SportProfile(SportGroup.BOXING, "Boxing", MarketArity.FLEXIBLE),
    SportProfile(SportGroup.CRICKET, "Cricket", MarketArity.FLEXIBLE),
    SportProfile(SportGroup.RUGBY_LEAGUE, "Rugby League", MarketArity.FLEXIBLE),
    SportProfile(SportGroup.RUGBY_UNION, "Rugby Union", MarketArity.FLEXIBLE),
    # Soccer
    SportProfile(SportGroup.SOCCER, "Soccer", MarketArity.THREE_WAY),
]

DEFAULT_ARITY = MarketArity.THREE_WAY

# Lookup by group
_PROFILE_BY_GROUP: dict[SportGroup, SportProfile] = {p.group: p for p in ALL_SPORT_PROFILES}


def sport_group(sport_key: str) -> Optional[SportGroup]:
    """"basketball_nba" → SportGroup.BASKETBALL. 미등록 그룹이면 None."""
    prefix = (sport_key or "").strip().lower().split("_", 1)[0]
    try:
        return SportGroup(prefix)
    except ValueError:
        return None


def sport_profile(sport_key: str) -> Optional[SportProfile]:
    group = sport_group(sport_key)
    return _PROFILE_BY_GROUP.get(group) if group is not None else None


def market_arity(sport_key: str) -> MarketArity:
    """Required h2h arity for a sport key (unmapped → three-way)."""
    profile = sport_profile(sport_key)
    return profile.arity if profile is not None else DEFAULT_ARITY
