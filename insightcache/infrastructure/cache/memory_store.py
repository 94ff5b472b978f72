"""In-memory tier of the cache.

A key -> CacheEntry map split into lock-striped shards so concurrent callers
working on unrelated keys rarely contend, and no single lock serializes
reads against writes across the whole map.
"""

import logging
import threading
from typing import Dict, Iterator, List, Optional

from insightcache.domain.models.cache import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_SHARD_COUNT = 16


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[str, CacheEntry] = {}


class MemoryStore:
    """Thread-safe map of cache entries with weakly consistent iteration."""

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT):
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self._shards: List[_Shard] = [_Shard() for _ in range(shard_count)]

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def get(self, key: str) -> Optional[CacheEntry]:
        shard = self._shard_for(key)
        with shard.lock:
            return shard.entries.get(key)

    def set(self, entry: CacheEntry) -> None:
        """Adds or replaces the entry stored under entry.key."""
        shard = self._shard_for(entry.key)
        with shard.lock:
            shard.entries[entry.key] = entry

    def add_if_absent(self, entry: CacheEntry) -> bool:
        """Stores the entry only when no entry exists for its key."""
        shard = self._shard_for(entry.key)
        with shard.lock:
            if entry.key in shard.entries:
                return False
            shard.entries[entry.key] = entry
            return True

    def remove(self, key: str) -> Optional[CacheEntry]:
        shard = self._shard_for(key)
        with shard.lock:
            return shard.entries.pop(key, None)

    def remove_if_same(self, key: str, entry: CacheEntry) -> bool:
        """Removes the key only while it still maps to this exact entry.

        Expiry eviction uses this so a concurrent set of a fresh value is
        never thrown away.
        """
        shard = self._shard_for(key)
        with shard.lock:
            if shard.entries.get(key) is not entry:
                return False
            del shard.entries[key]
            return True

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def entries(self) -> Iterator[CacheEntry]:
        """Iterates over a per-shard snapshot of the stored entries.

        Entries added or removed after a shard was copied may or may not be
        seen; mutation during iteration never raises.
        """
        for shard in self._shards:
            with shard.lock:
                snapshot = list(shard.entries.values())
            yield from snapshot

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        shard = self._shard_for(key)
        with shard.lock:
            return key in shard.entries
