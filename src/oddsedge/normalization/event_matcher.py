"""Event normalization and cross-source event matching."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence, TypeVar

from oddsedge.config import DEFAULT_NAME_MATCH_THRESHOLD, DEFAULT_TIME_TOLERANCE_MINUTES
from oddsedge.models.event import NormalizedEvent, SportEvent
from oddsedge.normalization.names import names_match, normalize_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_event(event: SportEvent) -> NormalizedEvent:
    """SportEvent → NormalizedEvent. Pure and total."""
    return NormalizedEvent(
        id=event.id,
        sport_key=event.sport_key,
        sport_title=event.sport_title,
        commence_time=event.commence_time,
        home_team=event.home_team,
        away_team=event.away_team,
        normalized_home=normalize_name(event.home_team),
        normalized_away=normalize_name(event.away_team),
    )


def events_match(
    event1: NormalizedEvent,
    event2: NormalizedEvent,
    tolerance_minutes: float = DEFAULT_TIME_TOLERANCE_MINUTES,
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> bool:
    """Same sport, start times within tolerance, teams match in either orientation."""
    if event1.sport_key != event2.sport_key:
        return False

    delta = abs((event1.commence_time - event2.commence_time).total_seconds())
    if delta > tolerance_minutes * 60:
        return False

    home_home = names_match(event1.home_team, event2.home_team, threshold)
    away_away = names_match(event1.away_team, event2.away_team, threshold)
    if home_home and away_away:
        return True

    # 홈/원정이 소스마다 뒤바뀌어 있을 수 있음
    home_away = names_match(event1.home_team, event2.away_team, threshold)
    away_home = names_match(event1.away_team, event2.home_team, threshold)
    return home_away and away_home


def find_matching_outcome(
    target_name: str,
    candidates: Sequence[T],
    name_of=lambda c: c.name,
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> Optional[T]:
    """Exact normalized match first, then the first fuzzy match."""
    normalized_target = normalize_name(target_name)
    for candidate in candidates:
        if normalize_name(name_of(candidate)) == normalized_target:
            return candidate
    for candidate in candidates:
        if names_match(name_of(candidate), target_name, threshold):
            return candidate
    return None


def reconcile_events(
    sources: Sequence[Sequence[SportEvent]],
    tolerance_minutes: float = DEFAULT_TIME_TOLERANCE_MINUTES,
    threshold: float = DEFAULT_NAME_MATCH_THRESHOLD,
) -> list[SportEvent]:
    """Merge events supplied by several sources into one list.

    The first source is the base. Each later event that matches a base
    event contributes its bookmakers (a bookmaker key already present is
    kept from the earlier source); unmatched events are appended as-is.
    """
    merged: list[SportEvent] = []
    normalized: list[NormalizedEvent] = []

    for source_index, events in enumerate(sources):
        used: set[int] = set()
        matched = 0
        for event in events:
            norm = normalize_event(event)
            target = None
            for i, existing in enumerate(normalized):
                if i in used:
                    continue
                if events_match(existing, norm, tolerance_minutes, threshold):
                    target = i
                    break

            if target is None:
                merged.append(event)
                normalized.append(norm)
                used.add(len(merged) - 1)
                continue

            used.add(target)
            matched += 1
            base = merged[target]
            known = {bm.key for bm in base.bookmakers}
            extra = tuple(bm for bm in event.bookmakers if bm.key not in known)
            merged[target] = replace(base, bookmakers=base.bookmakers + extra)

        if source_index > 0:
            logger.debug(
                "Source %d: %d/%d events matched existing events",
                source_index, matched, len(events),
            )

    return merged
