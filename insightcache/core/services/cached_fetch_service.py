"""Lazy population of the cache from data providers.

Wraps a provider fetch (weather, news, finance, trivia) with the cache:
fresh cached data is served directly, misses are fetched and stored, and a
failed fetch falls back to stale cached data when any is available.
"""

import logging
from typing import Any, Optional

from insightcache.domain.interfaces.cache import CacheService, Ttl
from insightcache.domain.models.common import CacheKey, Fetcher

logger = logging.getLogger(__name__)


class CachedFetchService:
    """Serves provider data through the cache."""

    def __init__(self, cache_service: CacheService):
        self.cache_service = cache_service

    async def get_or_fetch(
        self,
        key: CacheKey,
        fetcher: Fetcher,
        ttl: Optional[Ttl] = None,
        target: Any = None,
        allow_stale: bool = True,
    ) -> Any:
        """Returns cached data for key, fetching and caching it on a miss.

        Args:
            key: Cache key, e.g. 'weather_london_gb'.
            fetcher: Async provider call returning fresh data for the key.
            ttl: Lifetime of a freshly fetched value (cache default if None).
            target: Optional type or decode function for cached payloads.
            allow_stale: Fall back to expired cached data if the fetch fails.

        Returns:
            Fresh or cached data.

        Raises:
            Exception: Whatever the fetcher raised, when no fallback exists.
        """
        cached = await self.cache_service.get(key, target)
        if cached is not None:
            return cached

        try:
            fresh = await fetcher(key)
        except Exception as e:
            if allow_stale:
                stale = await self.cache_service.get_stale(key, target)
                if stale is not None:
                    logger.warning(f"Fetch for '{key}' failed ({e}); serving stale cached data.")
                    return stale
            logger.error(f"Fetch for '{key}' failed and no cached data is available: {e}")
            raise

        if fresh is not None:
            await self.cache_service.set(key, fresh, ttl)
        return fresh
