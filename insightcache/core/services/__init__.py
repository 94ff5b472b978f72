"""Application services built on top of the cache port."""

from insightcache.core.services.cached_fetch_service import CachedFetchService

__all__ = ["CachedFetchService"]
