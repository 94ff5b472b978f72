"""Handles parsed CLI commands by invoking the cache service.

Each handler reports results and failures through the UserInterface, so
no exception escapes to the CLI layer.
"""

import json
import logging
from typing import Optional

from insightcache.domain.interfaces.cache import CacheService
from insightcache.domain.interfaces.user_interface import UserInterface
from insightcache.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

class CommandHandler:
    """Handles incoming commands and delegates to the cache service."""

    def __init__(self, cache_service: CacheService, ui: UserInterface):
        """Initializes the CommandHandler with required services."""
        self.cache_service = cache_service
        self.ui = ui

    async def handle_get(self, key: str) -> None:
        """Handles the 'get' command."""
        logger.info(f"Handling 'get' command for key: {key}")
        try:
            value = await self.cache_service.get(CacheKey(key))
            if value is None:
                self.ui.display_warning(f"No live cache entry for '{key}'.")
            else:
                self.ui.display_output(value, title=key)
        except Exception as e:
            logger.error(f"Failed to read cache key '{key}': {e}", exc_info=True)
            self.ui.display_error(f"Failed to read cache: {e}")

    async def handle_set(self, key: str, raw_value: str, ttl_minutes: Optional[float] = None) -> None:
        """Handles the 'set' command. The value is parsed as JSON, else kept as text."""
        logger.info(f"Handling 'set' command for key: {key}")
        try:
            value = json.loads(raw_value)
        except ValueError:
            value = raw_value
        ttl = ttl_minutes * 60 if ttl_minutes is not None else None
        try:
            await self.cache_service.set(CacheKey(key), value, ttl)
            self.ui.display_info(f"Cached '{key}'.")
        except ValueError as e:
            self.ui.display_error(f"Invalid input: {e}")
        except Exception as e:
            logger.error(f"Failed to store cache key '{key}': {e}", exc_info=True)
            self.ui.display_error(f"Failed to store cache entry: {e}")

    async def handle_exists(self, key: str) -> None:
        """Handles the 'exists' command."""
        try:
            found = await self.cache_service.exists(CacheKey(key))
            self.ui.display_info(f"'{key}' is {'cached' if found else 'not cached'}.")
        except Exception as e:
            logger.error(f"Failed to check cache key '{key}': {e}", exc_info=True)
            self.ui.display_error(f"Failed to check cache: {e}")

    async def handle_remove(self, key: str) -> None:
        """Handles the 'remove' command."""
        try:
            await self.cache_service.remove(CacheKey(key))
            self.ui.display_info(f"Removed '{key}'.")
        except Exception as e:
            logger.error(f"Failed to remove cache key '{key}': {e}", exc_info=True)
            self.ui.display_error(f"Failed to remove cache entry: {e}")

    async def handle_clear(self) -> None:
        """Handles the 'clear' command."""
        logger.info("Handling 'clear' command")
        try:
            await self.cache_service.clear()
            self.ui.display_info("Cache cleared successfully.")
        except Exception as e:
            logger.error(f"Failed to clear cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to clear cache: {e}")

    async def handle_clear_expired(self) -> None:
        """Handles the 'clear-expired' command."""
        try:
            await self.cache_service.clear_expired()
            self.ui.display_info("Expired cache entries removed.")
        except Exception as e:
            logger.error(f"Failed to sweep cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to remove expired entries: {e}")

    async def handle_stats(self) -> None:
        """Handles the 'stats' command."""
        try:
            statistics = await self.cache_service.get_statistics()
            self.ui.display_statistics(statistics)
        except Exception as e:
            logger.error(f"Failed to collect cache statistics: {e}", exc_info=True)
            self.ui.display_error(f"Failed to collect statistics: {e}")
