"""File-based tier of the cache.

Persists one JSON record per key in a dedicated directory. Every storage
fault is logged and reported as a miss or a failed write; nothing here
raises for I/O or parse errors.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles
import aiofiles.os

from insightcache.domain.models.cache import CacheEntry
from insightcache.infrastructure.cache.serialization import PayloadSerializer

logger = logging.getLogger(__name__)

CACHE_FILE_SUFFIX = ".cache"
TEMP_FILE_SUFFIX = ".tmp"
# Characters rejected in file names on at least one supported platform
INVALID_FILENAME_CHARS = frozenset('<>:"/\\|?*')
# (inode, mtime in ns, size) identifying one version of a cache file
FileStamp = Tuple[int, int, int]


def sanitize_key(key: str) -> str:
    """Replaces characters that are invalid in file names with underscores."""
    return "".join("_" if ch in INVALID_FILENAME_CHARS or ord(ch) < 32 else ch for ch in key)


class DiskStore:
    """Maps cache keys to `<sanitized key>.cache` files in one directory."""

    def __init__(self, directory: Path, serializer: PayloadSerializer):
        # Ensure directory is a Path object for cross-platform compatibility
        self.directory = Path(directory)
        self._serializer = serializer

    def path_for(self, key: str) -> Path:
        return self.directory / f"{sanitize_key(key)}{CACHE_FILE_SUFFIX}"

    async def write(self, entry: CacheEntry) -> bool:
        """Writes the entry through a temp file. Returns False on any failure."""
        path = self.path_for(entry.key)
        temp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}{TEMP_FILE_SUFFIX}")
        try:
            text = json.dumps(entry.to_record(self._serializer.to_document(entry.payload)))
            # Directory is created on first use
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(temp_path, mode='w', encoding='utf-8') as f:
                await f.write(text)
            await aiofiles.os.replace(temp_path, path)
            logger.debug(f"Stored cache entry on disk: key={entry.key}, file={path}")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write cache file {path}: {e}")
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass  # Ignore cleanup errors
            return False

    async def read(self, key: str) -> Optional[CacheEntry]:
        """Reads the entry for key. Missing, unreadable or corrupt files yield None."""
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
                text = await f.read()
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read cache file {path}: {e}")
            return None
        return self._parse(text, path)

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            await aiofiles.os.remove(path)
            logger.debug(f"Deleted cache file: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")

    def list_files(self) -> List[Path]:
        """Lists the cache files currently in the directory."""
        if not self.directory.is_dir():
            return []
        try:
            return sorted(self.directory.glob(f"*{CACHE_FILE_SUFFIX}"))
        except OSError as e:
            logger.warning(f"Failed to list cache directory {self.directory}: {e}")
            return []

    async def count_files(self) -> int:
        files = await asyncio.to_thread(self.list_files)
        return len(files)

    async def clear(self) -> int:
        """Deletes every cache file, continuing past individual failures."""
        return await asyncio.to_thread(self._clear_sync)

    async def sweep(self, now: datetime, max_items: Optional[int] = None) -> int:
        """Deletes expired and corrupt files, then the oldest beyond max_items.

        Returns:
            The number of files removed.
        """
        return await asyncio.to_thread(self.sweep_blocking, now, max_items)

    async def total_size_bytes(self) -> int:
        return await asyncio.to_thread(self._total_size_sync)

    # --- Blocking operations, run in worker threads ---

    def _parse(self, text: str, path: Path) -> Optional[CacheEntry]:
        try:
            return CacheEntry.from_record(json.loads(text))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring corrupt cache file {path}: {e}")
            return None

    def _remove_file(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")
            return False

    def _clear_sync(self) -> int:
        removed = 0
        paths = self.list_files()
        if self.directory.is_dir():
            # Leftovers of interrupted writes
            paths.extend(self.directory.glob(f"*{TEMP_FILE_SUFFIX}"))
        for path in paths:
            if self._remove_file(path):
                removed += 1
        logger.info(f"Cleared {removed} cache file(s) from {self.directory}")
        return removed

    @staticmethod
    def _file_stamp(path: Path) -> FileStamp:
        info = path.stat()
        return info.st_ino, info.st_mtime_ns, info.st_size

    def _remove_if_unchanged(self, path: Path, stamp: FileStamp) -> bool:
        """Removes path unless a writer replaced it after it was inspected."""
        try:
            current = self._file_stamp(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to stat cache file {path}: {e}")
            return False
        if current != stamp:
            logger.debug(f"Cache file {path} was rewritten during the sweep, keeping it")
            return False
        return self._remove_file(path)

    def sweep_blocking(self, now: datetime, max_items: Optional[int] = None) -> int:
        """Synchronous form of `sweep` for callers already off the event loop."""
        removed = 0
        kept: List[Tuple[int, Path, FileStamp]] = []
        for path in self.list_files():
            try:
                stamp = self._file_stamp(path)
                text = path.read_text(encoding='utf-8')
            except FileNotFoundError:
                continue  # Deleted concurrently
            except (OSError, ValueError) as e:
                logger.warning(f"Unreadable cache file {path}, removing: {e}")
                removed += self._remove_file(path)
                continue
            entry = self._parse(text, path)
            if entry is None or not entry.is_live(now):
                removed += self._remove_if_unchanged(path, stamp)
            else:
                kept.append((stamp[1], path, stamp))

        if max_items is not None and len(kept) > max_items:
            kept.sort(key=lambda item: item[0])
            for _, path, stamp in kept[:len(kept) - max_items]:
                removed += self._remove_if_unchanged(path, stamp)
            logger.info(f"Disk cache exceeded {max_items} file(s); evicted oldest entries")

        logger.debug(f"Disk sweep removed {removed} file(s) from {self.directory}")
        return removed

    def _total_size_sync(self) -> int:
        total = 0
        for path in self.list_files():
            try:
                total += path.stat().st_size
            except OSError:
                continue  # Deleted concurrently or unreadable
        return total
