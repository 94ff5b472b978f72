import os
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typer.testing import CliRunner

from insightcache.infrastructure.cache.caching_service import CachingServiceImpl
from insightcache.infrastructure.cache.serialization import PayloadSerializer
from insightcache.infrastructure.config import settings as config_settings
from insightcache.infrastructure.config.settings import CacheSettings

class FakeClock:
    """Controllable UTC clock for expiry tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Cache directory that does not exist yet."""
    return tmp_path / "cache"

@pytest.fixture
def serializer() -> PayloadSerializer:
    return PayloadSerializer()

@pytest.fixture
def make_cache(cache_dir: Path, clock: FakeClock, serializer: PayloadSerializer):
    """Factory building a CachingServiceImpl over the temp directory and fake clock."""
    def _make(**overrides) -> CachingServiceImpl:
        options = dict(
            default_expiration=timedelta(minutes=30),
            enable_offline_mode=True,
            max_cache_size=100,
            cache_directory=cache_dir,
        )
        options.update(overrides)
        return CachingServiceImpl(settings=CacheSettings(**options), serializer=serializer, clock=clock)
    return _make

@pytest.fixture
def cache(make_cache) -> CachingServiceImpl:
    return make_cache()

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps tests away from the user's config file and environment overrides."""
    for name in list(os.environ):
        if name.startswith(config_settings.ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    config_settings.reset_configuration()
    config_settings.clear_test_config()
    yield
    config_settings.reset_configuration()
    config_settings.clear_test_config()
