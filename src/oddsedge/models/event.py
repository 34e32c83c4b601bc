"""Sport event, bookmaker market and odds quote models."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

# 지원 마켓 키 (The Odds API 기준)
H2H = "h2h"
SPREADS = "spreads"
TOTALS = "totals"
MARKET_KEYS: tuple[str, ...] = (H2H, SPREADS, TOTALS)


def parse_timestamp(value: object) -> Optional[datetime]:
    """ISO-8601 문자열 → timezone-aware datetime. 파싱 실패 시 None.

    Naive timestamps are assumed to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return None
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class OddsQuote:
    """One bookmaker price for one outcome of one market."""

    bookmaker_key: str
    bookmaker_title: str
    outcome_name: str
    price: float            # decimal odds
    market_key: str
    last_update: datetime
    point: Optional[float] = None  # spreads/totals line

    @property
    def is_degenerate(self) -> bool:
        """price ≤ 1.0 (또는 NaN) → 내재확률 계산 불가."""
        return not self.price > 1.0

    @property
    def implied_probability(self) -> float:
        """1 / decimal price."""
        return 1.0 / self.price


@dataclass(frozen=True)
class MarketOdds:
    """A single market (h2h, spreads or totals) quoted by one bookmaker."""

    key: str
    last_update: datetime
    quotes: tuple[OddsQuote, ...] = ()


@dataclass(frozen=True)
class BookmakerOdds:
    """All markets one bookmaker quotes for an event."""

    key: str
    title: str
    last_update: datetime
    markets: tuple[MarketOdds, ...] = ()

    def market(self, key: str) -> Optional[MarketOdds]:
        """마켓 키로 조회. 없으면 None."""
        for market in self.markets:
            if market.key == key:
                return market
        return None


@dataclass(frozen=True)
class SportEvent:
    """A sporting event with per-bookmaker quotes grouped by market."""

    id: str
    sport_key: str
    sport_title: str
    commence_time: datetime
    home_team: str
    away_team: str
    bookmakers: tuple[BookmakerOdds, ...] = ()

    def bookmakers_with_market(self, key: str) -> list[BookmakerOdds]:
        """해당 마켓을 제공하는 북메이커 목록."""
        return [bm for bm in self.bookmakers if bm.market(key) is not None]

    def market_quotes(self, key: str) -> list[OddsQuote]:
        """All quotes for a market across every bookmaker, in bookmaker order."""
        quotes: list[OddsQuote] = []
        for bm in self.bookmakers:
            market = bm.market(key)
            if market is not None:
                quotes.extend(market.quotes)
        return quotes

    @staticmethod
    def from_odds_api(raw: dict) -> Optional[SportEvent]:
        """The Odds API v4 event dict → SportEvent. 파싱 실패 시 None.

        Outcomes with a missing or non-numeric price are dropped; markets
        outside h2h/spreads/totals are ignored. An empty market is kept so
        that detectors can report it as malformed input.
        """
        commence_time = parse_timestamp(raw.get("commence_time"))
        if commence_time is None:
            return None

        home_team = raw.get("home_team") or ""
        away_team = raw.get("away_team") or ""
        if not home_team or not away_team:
            return None

        bookmakers: list[BookmakerOdds] = []
        for raw_bm in raw.get("bookmakers") or []:
            bookmaker = _parse_bookmaker(raw_bm)
            if bookmaker is not None:
                bookmakers.append(bookmaker)

        if not bookmakers:
            logger.debug("Event %s has no usable bookmakers", raw.get("id"))
            return None

        return SportEvent(
            id=str(raw.get("id", "")),
            sport_key=raw.get("sport_key", ""),
            sport_title=raw.get("sport_title", ""),
            commence_time=commence_time,
            home_team=home_team,
            away_team=away_team,
            bookmakers=tuple(bookmakers),
        )


@dataclass(frozen=True)
class NormalizedEvent:
    """Immutable event identity with canonicalized team names.

    Recomputed on every scan; never cached.
    """

    id: str
    sport_key: str
    sport_title: str
    commence_time: datetime
    home_team: str
    away_team: str
    normalized_home: str
    normalized_away: str


def _parse_bookmaker(raw_bm: dict) -> Optional[BookmakerOdds]:
    key = raw_bm.get("key")
    if not key:
        return None
    title = raw_bm.get("title") or key
    bm_update = parse_timestamp(raw_bm.get("last_update")) or datetime.now(tz=timezone.utc)

    markets: list[MarketOdds] = []
    seen: set[str] = set()
    for raw_mkt in raw_bm.get("markets") or []:
        market_key = raw_mkt.get("key")
        if market_key not in MARKET_KEYS or market_key in seen:
            continue
        seen.add(market_key)
        mkt_update = parse_timestamp(raw_mkt.get("last_update")) or bm_update

        quotes: list[OddsQuote] = []
        for raw_out in raw_mkt.get("outcomes") or []:
            try:
                price = float(raw_out["price"])
                point = raw_out.get("point")
                point = float(point) if point is not None else None
            except (KeyError, ValueError, TypeError):
                logger.debug("Dropping unparseable outcome from %s/%s", key, market_key)
                continue
            quotes.append(
                OddsQuote(
                    bookmaker_key=key,
                    bookmaker_title=title,
                    outcome_name=str(raw_out.get("name", "")),
                    price=price,
                    market_key=market_key,
                    last_update=mkt_update,
                    point=point,
                )
            )
        markets.append(MarketOdds(key=market_key, last_update=mkt_update, quotes=tuple(quotes)))

    return BookmakerOdds(key=key, title=title, last_update=bm_update, markets=tuple(markets))
