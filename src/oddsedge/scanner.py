"""Batch scanner: runs every detector over every event of a snapshot.

Detectors are pure and independent, so events fan out over a bounded
worker pool sized to CPU cores. Each event produces its own EventScan;
results are merged only after every unit of work has finished.

A failing detector never aborts the batch: the exception is logged,
recorded as a DETECTOR_FAILURE issue, and the other detectors' results
for that event are kept.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from oddsedge.config import EngineConfig
from oddsedge.models.event import SportEvent
from oddsedge.models.issue import IssueKind, ScanIssue
from oddsedge.models.opportunity import (
    ArbType,
    BackLayArb,
    BestOdds,
    LayQuote,
    MiddleOpportunity,
    MoneylineArb,
    SpreadArb,
    TotalsArb,
    ValueBet,
)
from oddsedge.normalization.event_matcher import normalize_event, reconcile_events
from oddsedge.strategy.back_lay import detect_back_lay, index_lay_book
from oddsedge.strategy.best_odds import summarize_best_odds
from oddsedge.strategy.lines import LineResult, MiddleFilter, detect_spreads, detect_totals
from oddsedge.strategy.middle_model import LinearMiddleModel, MiddleProbabilityModel
from oddsedge.strategy.moneyline import detect_moneyline
from oddsedge.strategy.opportunity import rank_opportunities
from oddsedge.strategy.value_bet import detect_value_bets

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCANNER = "scanner"
PARSER = "parser"


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass
class EventScan:
    """단일 이벤트 스캔 결과."""

    event_id: str
    moneyline: list[MoneylineArb] = field(default_factory=list)
    value_bets: list[ValueBet] = field(default_factory=list)
    spreads: list[SpreadArb] = field(default_factory=list)
    totals: list[TotalsArb] = field(default_factory=list)
    middles: list[MiddleOpportunity] = field(default_factory=list)
    back_lay: list[BackLayArb] = field(default_factory=list)
    best_odds: Optional[BestOdds] = None
    issues: list[ScanIssue] = field(default_factory=list)


@dataclass
class ScanStats:
    """Per-scan counters."""

    events_scanned: int = 0
    events_failed: int = 0
    arbs: int = 0
    near_arbs: int = 0
    value_bets: int = 0
    middles: int = 0
    back_lay: int = 0
    issues: int = 0
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "events_scanned": self.events_scanned,
            "events_failed": self.events_failed,
            "arbs": self.arbs,
            "near_arbs": self.near_arbs,
            "value_bets": self.value_bets,
            "middles": self.middles,
            "back_lay": self.back_lay,
            "issues": self.issues,
            "elapsed_seconds": round(self.elapsed_seconds, 4),
        }


@dataclass
class ScanResult:
    """Merged, ranked output of one batch scan."""

    moneyline: list[MoneylineArb] = field(default_factory=list)
    value_bets: list[ValueBet] = field(default_factory=list)
    spreads: list[SpreadArb] = field(default_factory=list)
    totals: list[TotalsArb] = field(default_factory=list)
    middles: list[MiddleOpportunity] = field(default_factory=list)
    back_lay: list[BackLayArb] = field(default_factory=list)
    best_odds: list[BestOdds] = field(default_factory=list)
    issues: list[ScanIssue] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)

    def all_opportunities(self) -> list:
        """Every opportunity kind in one list, ranked by metric."""
        return rank_opportunities(
            [*self.moneyline, *self.value_bets, *self.spreads, *self.totals,
             *self.middles, *self.back_lay]
        )

    def issues_for(self, event_id: str) -> list[ScanIssue]:
        return [i for i in self.issues if i.event_id == event_id]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _event_id(event: Any) -> str:
    """Best-effort id for issue reporting, also for records that are not SportEvents."""
    if isinstance(event, Mapping):
        return str(event.get("id", "?"))
    return str(getattr(event, "id", "?"))


def parse_events(raw_events: Iterable[Mapping[str, Any]]) -> tuple[list[SportEvent], list[ScanIssue]]:
    """Odds API JSON → SportEvents. 파싱 실패 이벤트는 issue로 기록."""
    events: list[SportEvent] = []
    issues: list[ScanIssue] = []
    for raw in raw_events:
        event = SportEvent.from_odds_api(raw)
        if event is None:
            event_id = _event_id(raw)
            issues.append(
                ScanIssue(event_id, PARSER, IssueKind.MALFORMED_INPUT, "unparseable event")
            )
            continue
        events.append(event)
    if issues:
        logger.debug("Skipped %d unparseable events", len(issues))
    return events, issues


# ---------------------------------------------------------------------------
# BatchScanner
# ---------------------------------------------------------------------------


class BatchScanner:
    """Run all detectors over a snapshot of events.

    Args:
        config: 엔진 설정 (없으면 기본값)
        middle_model: middle 확률 모델 (없으면 LinearMiddleModel)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        middle_model: Optional[MiddleProbabilityModel] = None,
    ):
        self.config = config or EngineConfig()
        self.middle_model = middle_model or LinearMiddleModel()
        self.middle_filter = MiddleFilter(
            leg_stake=self.config.middle_leg_stake,
            ev_floor=self.config.middle_ev_floor,
            loss_ceiling=self.config.middle_loss_ceiling,
        )

    # -- per event ---------------------------------------------------------

    def _guard(
        self,
        event: SportEvent,
        detector: str,
        issues: list[ScanIssue],
        default: T,
        fn: Callable[..., T],
        /,
        *args,
        **kwargs,
    ) -> T:
        """Run one detector; on failure log, record an issue, return default.

        Own parameters are positional-only so keyword arguments such as
        ``issues=`` pass through to ``fn``.
        """
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.exception("Detector %s failed on event %s", detector, event.id)
            issues.append(
                ScanIssue(event.id, detector, IssueKind.DETECTOR_FAILURE,
                          f"{type(exc).__name__}: {exc}")
            )
            return default

    def scan_event(
        self,
        event: SportEvent,
        lay_quotes: Optional[list[tuple[str, LayQuote]]] = None,
    ) -> EventScan:
        """Run every detector on one event. Never raises for detector errors."""
        cfg = self.config
        issues: list[ScanIssue] = []
        result = EventScan(event_id=event.id, issues=issues)
        normalized = normalize_event(event)

        moneyline = self._guard(
            event, "moneyline", issues, None, detect_moneyline,
            event, normalized,
            near_arb_threshold=cfg.near_arb_threshold,
            name_threshold=cfg.name_match_threshold,
            issues=issues,
        )
        if moneyline is not None:
            result.moneyline.append(moneyline)

        result.value_bets = self._guard(
            event, "value_bet", issues, [], detect_value_bets,
            event, normalized,
            value_threshold=cfg.value_threshold,
            name_threshold=cfg.name_match_threshold,
            issues=issues,
        )

        spreads: LineResult = self._guard(
            event, "spreads", issues, LineResult(), detect_spreads,
            event, normalized,
            near_arb_threshold=cfg.near_arb_threshold,
            model=self.middle_model,
            middle_filter=self.middle_filter,
            name_threshold=cfg.name_match_threshold,
            issues=issues,
        )
        totals: LineResult = self._guard(
            event, "totals", issues, LineResult(), detect_totals,
            event, normalized,
            near_arb_threshold=cfg.near_arb_threshold,
            model=self.middle_model,
            middle_filter=self.middle_filter,
            issues=issues,
        )
        result.spreads = spreads.arbs
        result.totals = totals.arbs
        result.middles = spreads.middles + totals.middles

        if lay_quotes:
            result.back_lay = self._guard(
                event, "back_lay", issues, [], detect_back_lay,
                event, lay_quotes, normalized,
                commission=cfg.exchange_commission,
                name_threshold=cfg.name_match_threshold,
                issues=issues,
            )

        result.best_odds = self._guard(
            event, "best_odds", issues, None, summarize_best_odds,
            event, normalized, name_threshold=cfg.name_match_threshold,
        )
        return result

    # -- batch -------------------------------------------------------------

    def _event_failure(self, event: Any, exc: BaseException) -> ScanIssue:
        """Whole-event failure outside the detector guards → scanner issue."""
        event_id = _event_id(event)
        logger.warning("Event scan error (%s): %s", event_id, exc)
        return ScanIssue(event_id, SCANNER, IssueKind.DETECTOR_FAILURE,
                         f"{type(exc).__name__}: {exc}")

    def _scan_indexed(
        self,
        event: SportEvent,
        lay_index: Mapping[str, list[tuple[str, LayQuote]]],
    ) -> EventScan:
        return self.scan_event(event, lay_index.get(event.id))

    def scan(
        self,
        events: Iterable[SportEvent],
        lay_book: Optional[Mapping[tuple[str, str], LayQuote]] = None,
    ) -> ScanResult:
        """Scan all events on a bounded thread pool. Returns ranked results.

        An event that fails outside the detector guards is recorded as a
        ``scanner`` issue; the rest of the batch is kept.
        """
        events = list(events)
        started = time.perf_counter()
        if not events:
            return ScanResult()

        lay_index = index_lay_book(lay_book) if lay_book else {}
        workers = min(self.config.worker_count, len(events))
        scans: list[EventScan] = []
        failures: list[ScanIssue] = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._scan_indexed, e, lay_index) for e in events]
            # 입력 순서대로 수집 (병합 결과가 실행 순서에 의존하지 않도록)
            for event, future in zip(events, futures):
                try:
                    scans.append(future.result())
                except Exception as exc:
                    failures.append(self._event_failure(event, exc))

        return self._merge(scans, failures, time.perf_counter() - started)

    async def scan_async(
        self,
        events: Iterable[SportEvent],
        lay_book: Optional[Mapping[tuple[str, str], LayQuote]] = None,
    ) -> ScanResult:
        """Async variant: executor-backed, semaphore-limited, gathered.

        Wrap in ``asyncio.wait_for`` for a batch-level timeout.
        """
        events = list(events)
        started = time.perf_counter()
        if not events:
            return ScanResult()

        lay_index = index_lay_book(lay_book) if lay_book else {}
        workers = min(self.config.worker_count, len(events))
        semaphore = asyncio.Semaphore(workers)
        loop = asyncio.get_running_loop()

        with ThreadPoolExecutor(max_workers=workers) as pool:

            async def _scan_one(event: SportEvent) -> EventScan:
                async with semaphore:
                    return await loop.run_in_executor(
                        pool, self._scan_indexed, event, lay_index,
                    )

            results = await asyncio.gather(
                *(_scan_one(e) for e in events), return_exceptions=True,
            )

        scans: list[EventScan] = []
        failures: list[ScanIssue] = []
        for event, outcome in zip(events, results):
            if isinstance(outcome, EventScan):
                scans.append(outcome)
            elif isinstance(outcome, Exception):
                failures.append(self._event_failure(event, outcome))

        return self._merge(scans, failures, time.perf_counter() - started)

    def reconcile(self, sources: Sequence[Sequence[SportEvent]]) -> list[SportEvent]:
        """Merge multi-source snapshots with this scanner's tolerance and name threshold."""
        return reconcile_events(
            sources,
            tolerance_minutes=self.config.event_time_tolerance_minutes,
            threshold=self.config.name_match_threshold,
        )

    # -- merge -------------------------------------------------------------

    def _merge(
        self,
        scans: list[EventScan],
        failures: list[ScanIssue],
        elapsed: float,
    ) -> ScanResult:
        result = ScanResult()
        for scan in scans:
            result.moneyline.extend(scan.moneyline)
            result.value_bets.extend(scan.value_bets)
            result.spreads.extend(scan.spreads)
            result.totals.extend(scan.totals)
            result.middles.extend(scan.middles)
            result.back_lay.extend(scan.back_lay)
            if scan.best_odds is not None:
                result.best_odds.append(scan.best_odds)
            result.issues.extend(scan.issues)
        result.issues.extend(failures)

        result.moneyline = rank_opportunities(result.moneyline)
        result.value_bets = rank_opportunities(result.value_bets)
        result.spreads = rank_opportunities(result.spreads)
        result.totals = rank_opportunities(result.totals)
        result.middles = rank_opportunities(result.middles)
        result.back_lay = rank_opportunities(result.back_lay)

        arbs = [*result.moneyline, *result.spreads, *result.totals]
        stats = result.stats
        stats.events_scanned = len(scans)
        stats.events_failed = len(failures)
        stats.arbs = sum(1 for a in arbs if a.arb_type is ArbType.ARB)
        stats.near_arbs = sum(1 for a in arbs if a.arb_type is ArbType.NEAR_ARB)
        stats.value_bets = len(result.value_bets)
        stats.middles = len(result.middles)
        stats.back_lay = len(result.back_lay)
        stats.issues = len(result.issues)
        stats.elapsed_seconds = elapsed

        logger.info(
            "Scan complete: %d events, %d arbs, %d near-arbs, %d value bets, "
            "%d middles, %d back/lay, %d issues (%.3fs)",
            stats.events_scanned, stats.arbs, stats.near_arbs, stats.value_bets,
            stats.middles, stats.back_lay, stats.issues, elapsed,
        )
        return result
