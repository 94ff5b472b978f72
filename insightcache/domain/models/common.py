"""Defines common Value Objects used across the cache contexts.

These objects represent simple values or concepts like cache keys and
type tags, ensuring consistency and type safety.
"""

from typing import Any, Awaitable, Callable, NewType

# === Caching Context ===
CacheKey = NewType("CacheKey", str)          # Caller-supplied key, e.g. 'weather_london_gb'
TypeTag = NewType("TypeTag", str)            # Registered name of a payload type

# === Data Fetching Context ===
# A provider call that produces fresh data for a cache key (weather, news, ...)
Fetcher = Callable[[str], Awaitable[Any]]

# Either a target type or a function turning a stored document into a value
Decoder = Callable[[Any], Any]
