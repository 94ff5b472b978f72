from datetime import datetime, timezone

import pytest

from insightcache.domain.models.cache import CacheStatistics
from insightcache.infrastructure.cache.statistics import StatisticsTracker

WHEN = datetime(2024, 3, 1, tzinfo=timezone.utc)

def test_hit_ratio_is_zero_without_requests():
    stats = CacheStatistics()
    assert stats.total_requests == 0
    assert stats.hit_ratio == 0.0

@pytest.mark.parametrize("hits, misses", [(1, 0), (0, 4), (3, 1), (7, 13)])
def test_hit_ratio(hits, misses):
    stats = CacheStatistics(hit_count=hits, miss_count=misses)
    assert stats.total_requests == hits + misses
    assert stats.hit_ratio == pytest.approx(hits / (hits + misses))

def test_tracker_counts_and_snapshots():
    tracker = StatisticsTracker()
    tracker.record_hit()
    tracker.record_hit()
    tracker.record_miss()
    tracker.mark_cleanup(WHEN)

    snapshot = tracker.snapshot(total_items=5, expired_items=1, total_size_bytes=2048)

    assert snapshot == CacheStatistics(
        total_items=5,
        expired_items=1,
        total_size_bytes=2048,
        last_cleanup=WHEN,
        hit_count=2,
        miss_count=1,
    )

def test_reset_zeroes_counters_and_records_cleanup():
    tracker = StatisticsTracker()
    tracker.record_hit()
    tracker.record_miss()
    tracker.reset(WHEN)

    snapshot = tracker.snapshot(0, 0, 0)
    assert snapshot.hit_count == 0
    assert snapshot.miss_count == 0
    assert tracker.last_cleanup == WHEN

def test_snapshot_is_immutable():
    snapshot = StatisticsTracker().snapshot(0, 0, 0)
    with pytest.raises(AttributeError):
        snapshot.hit_count = 10
