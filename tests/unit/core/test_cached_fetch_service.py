import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from insightcache.core.services import CachedFetchService
from insightcache.infrastructure.cache.caching_service import CachingServiceImpl

class ProviderError(Exception):
    """Stand-in for a provider-specific HTTP failure."""

@pytest.fixture
def service(cache: CachingServiceImpl) -> CachedFetchService:
    return CachedFetchService(cache)

@pytest.mark.asyncio
async def test_miss_fetches_and_populates_cache(service: CachedFetchService, cache: CachingServiceImpl):
    fetcher = AsyncMock(return_value={"temp": 15})

    assert await service.get_or_fetch("weather_london_gb", fetcher) == {"temp": 15}
    fetcher.assert_awaited_once_with("weather_london_gb")
    assert await cache.get("weather_london_gb") == {"temp": 15}

@pytest.mark.asyncio
async def test_hit_skips_fetch(service: CachedFetchService, cache: CachingServiceImpl):
    await cache.set("news_us_general", ["headline"])
    fetcher = AsyncMock()

    assert await service.get_or_fetch("news_us_general", fetcher) == ["headline"]
    fetcher.assert_not_awaited()

@pytest.mark.asyncio
async def test_uses_given_ttl(service: CachedFetchService, cache: CachingServiceImpl, clock):
    await service.get_or_fetch("trivia", AsyncMock(return_value=[1]), ttl=timedelta(minutes=1))
    clock.advance(minutes=2)
    assert await cache.get("trivia") is None

@pytest.mark.asyncio
async def test_failed_fetch_falls_back_to_stale_data(service: CachedFetchService, cache: CachingServiceImpl, clock):
    await cache.set("finance_aapl", {"price": 190}, timedelta(minutes=5))
    clock.advance(minutes=10)
    fetcher = AsyncMock(side_effect=ProviderError("rate limited"))

    assert await service.get_or_fetch("finance_aapl", fetcher) == {"price": 190}
    fetcher.assert_awaited_once()

@pytest.mark.asyncio
async def test_failed_fetch_without_stale_data_reraises(service: CachedFetchService):
    fetcher = AsyncMock(side_effect=ProviderError("offline"))
    with pytest.raises(ProviderError, match="offline"):
        await service.get_or_fetch("weather_nowhere", fetcher)

@pytest.mark.asyncio
async def test_stale_fallback_can_be_disabled(service: CachedFetchService, cache: CachingServiceImpl, clock):
    await cache.set("k", "old", timedelta(minutes=1))
    clock.advance(minutes=2)
    with pytest.raises(ProviderError):
        await service.get_or_fetch("k", AsyncMock(side_effect=ProviderError()), allow_stale=False)

@pytest.mark.asyncio
async def test_none_result_is_not_cached(service: CachedFetchService, cache: CachingServiceImpl):
    assert await service.get_or_fetch("k", AsyncMock(return_value=None)) is None
    assert await cache.exists("k") is False
