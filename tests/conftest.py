"""Shared test fixtures for oddsedge."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest

from oddsedge.models.event import BookmakerOdds, MarketOdds, OddsQuote, SportEvent

NOW = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)


def build_event(
    books: dict[str, dict[str, list[tuple]]],
    sport_key: str = "basketball_nba",
    home: str = "Los Angeles Lakers",
    away: str = "Boston Celtics",
    event_id: str = "evt_1",
    commence: datetime = NOW,
    updates: Optional[dict[str, datetime]] = None,
) -> SportEvent:
    """books: {bookmaker_key: {market_key: [(name, price) | (name, price, point)]}}."""
    updates = updates or {}
    bookmakers = []
    for bm_key, markets in books.items():
        ts = updates.get(bm_key, NOW)
        market_objs = []
        for market_key, outcomes in markets.items():
            quotes = tuple(
                OddsQuote(
                    bookmaker_key=bm_key,
                    bookmaker_title=bm_key.title(),
                    outcome_name=o[0],
                    price=o[1],
                    market_key=market_key,
                    last_update=ts,
                    point=o[2] if len(o) > 2 else None,
                )
                for o in outcomes
            )
            market_objs.append(MarketOdds(key=market_key, last_update=ts, quotes=quotes))
        bookmakers.append(
            BookmakerOdds(key=bm_key, title=bm_key.title(), last_update=ts,
                          markets=tuple(market_objs))
        )
    return SportEvent(
        id=event_id,
        sport_key=sport_key,
        sport_title=sport_key.split("_")[-1].upper(),
        commence_time=commence,
        home_team=home,
        away_team=away,
        bookmakers=tuple(bookmakers),
    )


@pytest.fixture
def make_event():
    """Factory fixture for SportEvent snapshots."""
    return build_event


@pytest.fixture
def scenario_a_event() -> SportEvent:
    """2-way NBA moneyline arb: best Lakers 2.15 @ bet365, best Celtics 1.92 @ pinnacle."""
    return build_event({
        "bet365": {"h2h": [("Los Angeles Lakers", 2.15), ("Boston Celtics", 1.75)]},
        "pinnacle": {"h2h": [("Los Angeles Lakers", 1.95), ("Boston Celtics", 1.92)]},
    })


@pytest.fixture
def soccer_no_arb_event() -> SportEvent:
    """3-way EPL: best prices 2.00 / 3.40 / 4.20 → implied ≈ 1.032."""
    return build_event(
        {
            "bet365": {"h2h": [("Arsenal", 2.00), ("Draw", 3.30), ("Chelsea", 4.20)]},
            "williamhill": {"h2h": [("Arsenal", 1.95), ("Draw", 3.40), ("Chelsea", 4.00)]},
        },
        sport_key="soccer_epl",
        home="Arsenal",
        away="Chelsea",
        event_id="evt_epl",
    )


@pytest.fixture
def sample_odds_api_event() -> dict:
    """Raw event dict as returned by The Odds API v4."""
    return {
        "id": "e912304de2b2ce35b473ce2ecd3d1502",
        "sport_key": "basketball_nba",
        "sport_title": "NBA",
        "commence_time": "2026-03-01T18:00:00Z",
        "home_team": "Los Angeles Lakers",
        "away_team": "Boston Celtics",
        "bookmakers": [
            {
                "key": "draftkings",
                "title": "DraftKings",
                "last_update": "2026-03-01T17:55:00Z",
                "markets": [
                    {
                        "key": "h2h",
                        "last_update": "2026-03-01T17:55:10Z",
                        "outcomes": [
                            {"name": "Los Angeles Lakers", "price": 2.15},
                            {"name": "Boston Celtics", "price": 1.75},
                        ],
                    },
                    {
                        "key": "spreads",
                        "outcomes": [
                            {"name": "Los Angeles Lakers", "price": 1.91, "point": 3.5},
                            {"name": "Boston Celtics", "price": 1.91, "point": -3.5},
                        ],
                    },
                ],
            },
            {
                "key": "fanduel",
                "title": "FanDuel",
                "last_update": "2026-03-01T17:56:00Z",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"name": "Los Angeles Lakers", "price": 1.95},
                            {"name": "Boston Celtics", "price": 1.92},
                        ],
                    },
                ],
            },
        ],
    }
