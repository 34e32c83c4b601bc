"""Caller-owned TTL cache for scan results.

The engine itself never caches. A caller that scans the same snapshot
key repeatedly (e.g. per sport) can hold one OpportunityCache and reuse
a ScanResult until it expires. The clock is injected so expiry can be
tested without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

from oddsedge.config import DEFAULT_CACHE_TTL_SECONDS, EngineConfig

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cached value + store time (clock units)."""

    value: V
    stored_at: float


class OpportunityCache(Generic[V]):
    """Thread-safe in-memory TTL cache.

    key → (value, stored_at). An entry is fresh while
    ``clock() - stored_at < ttl_seconds``; at exactly TTL it is expired.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must not be negative, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> OpportunityCache:
        """TTL from ``EngineConfig.cache_ttl_seconds``."""
        return cls(ttl_seconds=config.cache_ttl_seconds, clock=clock)

    def set(self, key: Hashable, value: V) -> None:
        """값 저장. 타임스탬프 갱신."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def get(self, key: Hashable) -> Optional[V]:
        """신선한 값 조회. 없거나 만료되면 None (만료 항목은 제거)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.stored_at < self.ttl_seconds:
                self._hits += 1
                return entry.value
            if entry is not None:
                del self._entries[key]
            self._misses += 1
            return None

    def age(self, key: Hashable) -> Optional[float]:
        """Seconds since the entry was stored; None if absent."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return self._clock() - entry.stored_at

    def is_fresh(self, key: Hashable) -> bool:
        age = self.age(key)
        return age is not None and age < self.ttl_seconds

    def invalidate(self, key: Hashable) -> bool:
        """항목 제거. 있었으면 True."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """캐시 초기화."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        """Fresh cached value, else compute + store.

        compute() runs outside the lock; concurrent misses on the same key
        may both compute, and the last store wins.
        """
        value = self.get(key)
        if value is not None:
            return value
        logger.debug("Cache miss for %r, computing", key)
        value = compute()
        self.set(key, value)
        return value

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.is_fresh(key)

    @property
    def stats(self) -> dict:
        """Cache hit/miss statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
        }
