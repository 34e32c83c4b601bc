"""Engine configuration — detection thresholds, env-based overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 기본 임계값
# ---------------------------------------------------------------------------

DEFAULT_NEAR_ARB_THRESHOLD = 2.0       # %
DEFAULT_VALUE_THRESHOLD = 5.0          # %
DEFAULT_NAME_MATCH_THRESHOLD = 0.85
DEFAULT_TIME_TOLERANCE_MINUTES = 30
DEFAULT_MIDDLE_EV_FLOOR = -10.0        # currency units
DEFAULT_MIDDLE_LOSS_CEILING = 10.0     # currency units
DEFAULT_MIDDLE_LEG_STAKE = 100.0
DEFAULT_EXCHANGE_COMMISSION = 0.05
DEFAULT_CACHE_TTL_SECONDS = 15.0

ENV_PREFIX = "ODDSEDGE_"


# ---------------------------------------------------------------------------
# EngineConfig — 환경변수 기반 설정
# ---------------------------------------------------------------------------


@dataclass
class EngineConfig:
    """엔진 전체 설정. 환경변수 또는 기본값."""

    near_arb_threshold: float = DEFAULT_NEAR_ARB_THRESHOLD
    value_threshold: float = DEFAULT_VALUE_THRESHOLD
    name_match_threshold: float = DEFAULT_NAME_MATCH_THRESHOLD
    event_time_tolerance_minutes: int = DEFAULT_TIME_TOLERANCE_MINUTES
    middle_ev_floor: float = DEFAULT_MIDDLE_EV_FLOOR
    middle_loss_ceiling: float = DEFAULT_MIDDLE_LOSS_CEILING
    middle_leg_stake: float = DEFAULT_MIDDLE_LEG_STAKE
    exchange_commission: float = DEFAULT_EXCHANGE_COMMISSION
    max_workers: Optional[int] = None  # None → CPU 코어 수
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS

    def __post_init__(self):
        # 음수 임계값은 의미 없음
        if self.near_arb_threshold < 0:
            self.near_arb_threshold = 0.0
        if self.value_threshold < 0:
            self.value_threshold = 0.0
        # similarity 범위 [0, 1]
        self.name_match_threshold = min(max(self.name_match_threshold, 0.0), 1.0)
        if self.event_time_tolerance_minutes < 0:
            self.event_time_tolerance_minutes = 0
        if self.middle_leg_stake <= 0:
            self.middle_leg_stake = DEFAULT_MIDDLE_LEG_STAKE
        if not 0.0 <= self.exchange_commission < 1.0:
            self.exchange_commission = DEFAULT_EXCHANGE_COMMISSION
        if self.max_workers is not None and self.max_workers < 1:
            self.max_workers = 1
        if self.cache_ttl_seconds < 0:
            self.cache_ttl_seconds = 0.0

    @property
    def worker_count(self) -> int:
        """Bounded pool size: explicit max_workers or the CPU count."""
        return self.max_workers or os.cpu_count() or 1

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> EngineConfig:
        """환경변수에서 설정 로드. 없으면 안전한 기본값.

        If ``env_file`` is given it is loaded first with python-dotenv;
        variables already set in the process environment win.
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)

        def _float(name: str, default: float) -> float:
            raw = os.environ.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return float(raw)
            except ValueError:
                logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
                return default

        max_workers_raw = os.environ.get(ENV_PREFIX + "MAX_WORKERS", "").strip()
        max_workers = int(max_workers_raw) if max_workers_raw.isdigit() else None

        return cls(
            near_arb_threshold=_float("NEAR_ARB_THRESHOLD", DEFAULT_NEAR_ARB_THRESHOLD),
            value_threshold=_float("VALUE_THRESHOLD", DEFAULT_VALUE_THRESHOLD),
            name_match_threshold=_float("NAME_MATCH_THRESHOLD", DEFAULT_NAME_MATCH_THRESHOLD),
            event_time_tolerance_minutes=int(
                _float("TIME_TOLERANCE_MINUTES", DEFAULT_TIME_TOLERANCE_MINUTES)
            ),
            middle_ev_floor=_float("MIDDLE_EV_FLOOR", DEFAULT_MIDDLE_EV_FLOOR),
            middle_loss_ceiling=_float("MIDDLE_LOSS_CEILING", DEFAULT_MIDDLE_LOSS_CEILING),
            middle_leg_stake=_float("MIDDLE_LEG_STAKE", DEFAULT_MIDDLE_LEG_STAKE),
            exchange_commission=_float("EXCHANGE_COMMISSION", DEFAULT_EXCHANGE_COMMISSION),
            max_workers=max_workers,
            cache_ttl_seconds=_float("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        )
