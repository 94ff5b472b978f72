"""Concrete implementation of the two-tier Caching Service.

Coordinates the memory tier (always on) and the disk tier (offline mode),
per-entry expiration, hit/miss statistics and the background sweep. Storage
faults never reach callers: the cache degrades to memory-only or reports a
miss instead.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

# Domain Layer Imports
from insightcache.domain.interfaces.cache import CacheService, Ttl
from insightcache.domain.models.cache import CacheEntry, CacheStatistics, utc_now
from insightcache.domain.models.common import CacheKey

# Infrastructure Layer Imports
from insightcache.infrastructure.cache.cleanup_scheduler import CleanupScheduler
from insightcache.infrastructure.cache.disk_store import DiskStore
from insightcache.infrastructure.cache.memory_store import MemoryStore
from insightcache.infrastructure.cache.serialization import PayloadSerializer
from insightcache.infrastructure.cache.statistics import StatisticsTracker
from insightcache.infrastructure.config.settings import CacheSettings

logger = logging.getLogger(__name__)


class CachingServiceImpl(CacheService):
    """Memory + disk response cache with lazy expiry and periodic sweeps.

    Expired entries are dropped lazily on lookup and whenever the memory tier
    outgrows `max_cache_size`. The periodic sweep every `cleanup_interval` only
    runs after `start()` or inside `async with`; one-shot users such as the CLI
    never start it.
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        serializer: Optional[PayloadSerializer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initializes the caching service.

        Args:
            settings: Cache configuration (defaults when None).
            serializer: Payload serializer; share one to reuse registered types.
            clock: Returns the current UTC time. Injectable for tests.
        """
        self.settings = settings or CacheSettings()
        self.serializer = serializer or PayloadSerializer()
        self._clock = clock

        self.memory_store = MemoryStore()
        self.disk_store = DiskStore(self.settings.cache_directory, self.serializer)
        self._statistics = StatisticsTracker()

        # Serializes sweeps only; get/set never take it. Shared by every thread
        # and event loop driving this cache
        self._cleanup_lock = threading.Lock()
        self._sweep_generation = 0
        self._scheduler = CleanupScheduler(self.clear_expired, self.settings.cleanup_interval)

        logger.info(
            f"CachingService initialized. dir={self.settings.cache_directory}, "
            f"offline_mode={self.settings.enable_offline_mode}, "
            f"ttl={self.settings.default_expiration}, max_items={self.settings.max_cache_size}"
        )

    # --- Lifecycle ---

    def start(self) -> None:
        """Starts the periodic background sweep on the running event loop."""
        self._scheduler.start()

    async def close(self) -> None:
        """Stops the periodic background sweep."""
        await self._scheduler.stop()

    async def __aenter__(self) -> "CachingServiceImpl":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # --- Helpers ---

    @staticmethod
    def _is_valid_key(key: Any) -> bool:
        return isinstance(key, str) and bool(key.strip())

    def _resolve_ttl(self, ttl: Optional[Ttl]) -> timedelta:
        if ttl is None:
            lifetime = self.settings.default_expiration
        elif isinstance(ttl, timedelta):
            lifetime = ttl
        elif isinstance(ttl, (int, float)) and not isinstance(ttl, bool):
            lifetime = timedelta(seconds=ttl)
        else:
            raise TypeError(f"ttl must be a timedelta or a number of seconds, got {type(ttl).__name__}")
        if lifetime.total_seconds() <= 0:
            raise ValueError(f"ttl must be positive, got {lifetime}")
        return lifetime

    async def _read_disk_entry(self, key: str) -> Optional[CacheEntry]:
        entry = await self.disk_store.read(key)
        if entry is not None and entry.key != key:
            # Another key sanitized to the same file name
            logger.debug(f"Disk cache file for '{key}' belongs to '{entry.key}'")
            return None
        return entry

    def _decode_hit(self, entry: CacheEntry, target: Any) -> Optional[Any]:
        """Decodes a live entry, counting an undecodable payload as a miss."""
        value = self.serializer.decode(entry.payload, target, entry.type_tag)
        if value is None and entry.payload is not None:
            self._statistics.record_miss()
            logger.debug(f"Cache payload mismatch for key: {entry.key}")
            return None
        self._statistics.record_hit()
        return value

    # --- CacheService Interface Implementation ---

    async def set(self, key: CacheKey, value: Any, ttl: Optional[Ttl] = None) -> None:
        if not self._is_valid_key(key):
            raise ValueError("Cache key cannot be empty")
        lifetime = self._resolve_ttl(ttl)
        now = self._clock()
        entry = CacheEntry(
            key=key,
            payload=value,
            created_at=now,
            expires_at=now + lifetime,
            type_tag=self.serializer.type_tag(value),
        )

        self.memory_store.set(entry)
        logger.debug(f"Stored item in memory cache: key={key}, expires={entry.expires_at.isoformat()}")

        disk_over_bound = False
        if self.settings.enable_offline_mode:
            # A failed write leaves the memory tier authoritative
            written = await self.disk_store.write(entry)
            if written and self.settings.max_disk_items is not None:
                disk_over_bound = await self.disk_store.count_files() > self.settings.max_disk_items

        if len(self.memory_store) > self.settings.max_cache_size or disk_over_bound:
            await self.clear_expired()

    async def get(self, key: CacheKey, target: Any = None) -> Optional[Any]:
        if not self._is_valid_key(key):
            return None
        now = self._clock()

        entry = self.memory_store.get(key)
        if entry is not None:
            if entry.is_live(now):
                logger.debug(f"Memory cache hit for key: {key}")
                return self._decode_hit(entry, target)
            self.memory_store.remove_if_same(key, entry)
            logger.debug(f"Memory cache entry expired for key: {key}")

        if self.settings.enable_offline_mode:
            disk_entry = await self._read_disk_entry(key)
            if disk_entry is not None and disk_entry.is_live(now):
                # Promote without overwriting a newer concurrent write
                self.memory_store.add_if_absent(disk_entry)
                logger.debug(f"Disk cache hit for key: {key}")
                return self._decode_hit(disk_entry, target)

        self._statistics.record_miss()
        logger.debug(f"Cache miss for key: {key}")
        return None

    async def exists(self, key: CacheKey) -> bool:
        if not self._is_valid_key(key):
            return False
        now = self._clock()

        entry = self.memory_store.get(key)
        if entry is not None:
            if entry.is_live(now):
                return True
            self.memory_store.remove_if_same(key, entry)

        if self.settings.enable_offline_mode:
            disk_entry = await self._read_disk_entry(key)
            return disk_entry is not None and disk_entry.is_live(now)
        return False

    async def remove(self, key: CacheKey) -> None:
        if not self._is_valid_key(key):
            return
        self.memory_store.remove(key)
        await self.disk_store.delete(key)
        logger.debug(f"Removed cache key: {key}")

    async def clear(self) -> None:
        self.memory_store.clear()
        await self.disk_store.clear()
        self._statistics.reset(self._clock())
        logger.info("Cleared memory and disk cache.")

    async def clear_expired(self) -> None:
        generation = self._sweep_generation
        # The lock is only taken inside the worker thread
        await asyncio.to_thread(self._sweep_if_current, generation)

    def _sweep_if_current(self, generation: int) -> None:
        with self._cleanup_lock:
            if self._sweep_generation != generation:
                # A sweep finished while this caller waited; its effect stands
                logger.debug("Skipping cache sweep, one completed while waiting.")
                return

            now = self._clock()
            memory_removed = 0
            for entry in self.memory_store.entries():
                if not entry.is_live(now) and self.memory_store.remove_if_same(entry.key, entry):
                    memory_removed += 1

            disk_removed = self.disk_store.sweep_blocking(now, self.settings.max_disk_items)

            self._sweep_generation += 1
            self._statistics.mark_cleanup(self._clock())
            logger.info(f"Cache sweep removed {memory_removed} memory entries and {disk_removed} disk file(s).")

    async def get_statistics(self) -> CacheStatistics:
        now = self._clock()
        entries = list(self.memory_store.entries())
        expired = sum(1 for entry in entries if not entry.is_live(now))
        total_size = await self.disk_store.total_size_bytes()
        return self._statistics.snapshot(
            total_items=len(entries),
            expired_items=expired,
            total_size_bytes=total_size,
        )

    async def get_stale(self, key: CacheKey, target: Any = None) -> Optional[Any]:
        if not self._is_valid_key(key):
            return None
        entry = self.memory_store.get(key)
        if entry is None and self.settings.enable_offline_mode:
            entry = await self._read_disk_entry(key)
        if entry is None:
            return None
        return self.serializer.decode(entry.payload, target, entry.type_tag)
