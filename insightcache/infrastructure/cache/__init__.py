"""Caching Service Implementation.

Provides the concrete CacheService: an in-memory tier, a file-based tier
with TTL handling, payload serialization, statistics and periodic cleanup.
Bounded Context: Cache Management
"""

from insightcache.infrastructure.cache.caching_service import CachingServiceImpl
from insightcache.infrastructure.cache.serialization import PayloadSerializer

__all__ = ["CachingServiceImpl", "PayloadSerializer"]
