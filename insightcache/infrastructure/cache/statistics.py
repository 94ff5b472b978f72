"""Hit/miss bookkeeping for the cache."""

import threading
from datetime import datetime
from typing import Optional

from insightcache.domain.models.cache import CacheStatistics


class StatisticsTracker:
    """Process-lifetime counters. The lock only guards the counters themselves."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._last_cleanup: Optional[datetime] = None

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def mark_cleanup(self, when: datetime) -> None:
        with self._lock:
            self._last_cleanup = when

    def reset(self, when: datetime) -> None:
        """Zeroes the counters; a full clear counts as a cleanup."""
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._last_cleanup = when

    @property
    def last_cleanup(self) -> Optional[datetime]:
        return self._last_cleanup

    def snapshot(self, total_items: int, expired_items: int, total_size_bytes: int) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                total_items=total_items,
                expired_items=expired_items,
                total_size_bytes=total_size_bytes,
                last_cleanup=self._last_cleanup,
                hit_count=self._hits,
                miss_count=self._misses,
            )
