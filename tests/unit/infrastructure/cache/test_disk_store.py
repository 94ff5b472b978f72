import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from insightcache.domain.models.cache import CacheEntry
from insightcache.infrastructure.cache.disk_store import DiskStore, sanitize_key
from insightcache.infrastructure.cache.serialization import PayloadSerializer

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

def make_entry(key: str, payload=None, minutes: int = 10) -> CacheEntry:
    return CacheEntry(key=key, payload=payload, created_at=NOW, expires_at=NOW + timedelta(minutes=minutes))

@pytest.fixture
def store(cache_dir: Path) -> DiskStore:
    return DiskStore(cache_dir, PayloadSerializer())

@pytest.mark.parametrize("key, expected", [
    ("weather_london_gb", "weather_london_gb"),
    ("finance/AAPL", "finance_AAPL"),
    ('a<b>c:d"e\\f|g?h*i', "a_b_c_d_e_f_g_h_i"),
    ("tab\there", "tab_here"),
    ("news us", "news us"),
])
def test_sanitize_key(key, expected):
    assert sanitize_key(key) == expected

def test_path_for_uses_suffix(store: DiskStore, cache_dir: Path):
    assert store.path_for("finance/MSFT") == cache_dir / "finance_MSFT.cache"

@pytest.mark.asyncio
async def test_write_creates_directory_and_read_returns_entry(store: DiskStore, cache_dir: Path):
    assert not cache_dir.exists()
    assert await store.write(make_entry("k", {"temp": 15}, minutes=30)) is True

    entry = await store.read("k")
    assert entry.key == "k"
    assert entry.payload == {"temp": 15}
    assert entry.created_at == NOW
    assert entry.expires_at == NOW + timedelta(minutes=30)
    # No temp files left behind
    assert [p.name for p in cache_dir.iterdir()] == ["k.cache"]

@pytest.mark.asyncio
async def test_read_missing_file_returns_none(store: DiskStore):
    assert await store.read("missing") is None

@pytest.mark.asyncio
@pytest.mark.parametrize("content", [
    "",
    "{not json",
    "[]",
    json.dumps({"key": "k"}),
    json.dumps({"key": "k", "payload": 1, "created_at": "yesterday", "expires_at": "tomorrow"}),
])
async def test_read_corrupt_file_returns_none(store: DiskStore, cache_dir: Path, content):
    cache_dir.mkdir()
    (cache_dir / "k.cache").write_text(content, encoding="utf-8")
    assert await store.read("k") is None

@pytest.mark.asyncio
async def test_read_undecodable_bytes_returns_none(store: DiskStore, cache_dir: Path):
    cache_dir.mkdir()
    (cache_dir / "k.cache").write_bytes(b"\xff\xfe\x00garbage")
    assert await store.read("k") is None

@pytest.mark.asyncio
async def test_write_failure_returns_false(store: DiskStore, cache_dir: Path):
    cache_dir.parent.mkdir(parents=True, exist_ok=True)
    cache_dir.write_text("a file where the directory should be")
    assert await store.write(make_entry("k", 1)) is False

@pytest.mark.asyncio
async def test_delete_is_idempotent(store: DiskStore, cache_dir: Path):
    await store.write(make_entry("k", 1))
    await store.delete("k")
    await store.delete("k")
    assert not (cache_dir / "k.cache").exists()

@pytest.mark.asyncio
async def test_clear_removes_cache_and_temp_files(store: DiskStore, cache_dir: Path):
    await store.write(make_entry("a", 1))
    await store.write(make_entry("b", 2))
    (cache_dir / "a.cache.deadbeef.tmp").write_text("partial")
    (cache_dir / "notes.txt").write_text("not ours")

    assert await store.clear() == 3
    assert [p.name for p in cache_dir.iterdir()] == ["notes.txt"]

@pytest.mark.asyncio
async def test_clear_without_directory(store: DiskStore):
    assert await store.clear() == 0

@pytest.mark.asyncio
async def test_sweep_removes_expired_and_corrupt_files(store: DiskStore, cache_dir: Path):
    await store.write(make_entry("expired", 1, minutes=1))
    await store.write(make_entry("live", 2, minutes=60))
    (cache_dir / "corrupt.cache").write_text("{", encoding="utf-8")

    removed = await store.sweep(NOW + timedelta(minutes=5))

    assert removed == 2
    assert [p.name for p in store.list_files()] == ["live.cache"]

@pytest.mark.asyncio
async def test_sweep_skips_files_deleted_concurrently(store: DiskStore, cache_dir: Path, mocker):
    await store.write(make_entry("a", 1))
    ghost = cache_dir / "ghost.cache"
    mocker.patch.object(store, "list_files", return_value=[ghost, cache_dir / "a.cache"])

    assert await store.sweep(NOW) == 0

def test_sweep_keeps_file_rewritten_after_it_was_read(store: DiskStore, mocker):
    asyncio.run(store.write(make_entry("weather_oslo_no", {"temp": 1}, minutes=1)))
    parse = store._parse

    def parse_then_rewrite(text, path):
        entry = parse(text, path)
        # A concurrent set lands between the read and the delete
        asyncio.run(store.write(make_entry("weather_oslo_no", {"temp": 2}, minutes=120)))
        return entry

    mocker.patch.object(store, "_parse", side_effect=parse_then_rewrite)
    assert store.sweep_blocking(NOW + timedelta(minutes=5)) == 0

    mocker.stopall()
    entry = asyncio.run(store.read("weather_oslo_no"))
    assert entry.payload == {"temp": 2}

@pytest.mark.asyncio
async def test_total_size_and_count(store: DiskStore, cache_dir: Path):
    assert await store.total_size_bytes() == 0
    await store.write(make_entry("a", "x" * 50))
    await store.write(make_entry("b", "y"))
    expected = sum(p.stat().st_size for p in cache_dir.glob("*.cache"))
    assert await store.total_size_bytes() == expected
    assert await store.count_files() == 2
