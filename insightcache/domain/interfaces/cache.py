"""Interface for the response cache.

Defines the contract for storing, retrieving, and managing cached data
across the memory and disk tiers.
"""

import abc
from datetime import timedelta
from typing import Any, Optional, Union

# Import relevant domain models
from ..models.cache import CacheStatistics
from ..models.common import CacheKey

Ttl = Union[timedelta, int, float]

class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: Optional[Ttl] = None) -> None:
        """Stores an item under a key.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live as a timedelta or seconds (configured default if None).

        Raises:
            ValueError: If the key is empty or the ttl is not positive.
        """
        pass

    @abc.abstractmethod
    async def get(self, key: CacheKey, target: Any = None) -> Optional[Any]:
        """Retrieves a live item, checking memory first and then disk.

        Args:
            key: The cache key to retrieve.
            target: Optional type or decode function applied to the stored payload.

        Returns:
            The cached item if found, live and decodable, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def exists(self, key: CacheKey) -> bool:
        """Checks whether a live item exists for the key."""
        pass

    @abc.abstractmethod
    async def remove(self, key: CacheKey) -> None:
        """Deletes an item from every tier. Removing a missing key is not an error."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Clears all items and resets the hit/miss counters."""
        pass

    @abc.abstractmethod
    async def clear_expired(self) -> None:
        """Sweeps expired items from every tier."""
        pass

    @abc.abstractmethod
    async def get_statistics(self) -> CacheStatistics:
        """Returns a snapshot of the cache statistics."""
        pass

    @abc.abstractmethod
    async def get_stale(self, key: CacheKey, target: Any = None) -> Optional[Any]:
        """Retrieves an item regardless of expiry, without side effects.

        Used as a fallback when fresh data cannot be fetched.
        """
        pass
