"""Domain models for cached entries and cache statistics."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """A cached payload together with its lifetime."""
    key: str
    payload: Any
    created_at: datetime
    expires_at: datetime
    type_tag: Optional[str] = None

    def is_live(self, now: datetime) -> bool:
        """An entry is live strictly before its expiry time."""
        return now < self.expires_at

    def to_record(self, payload_document: Any) -> Dict[str, Any]:
        """Builds the persisted record, with the payload already made JSON-safe."""
        return {
            "key": self.key,
            "payload": payload_document,
            "type_tag": self.type_tag,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CacheEntry":
        """Rebuilds an entry from a persisted record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        if not isinstance(record, dict):
            raise TypeError(f"Cache record must be an object, got {type(record).__name__}")
        key = record["key"]
        if not isinstance(key, str):
            raise TypeError("Cache record key must be a string")
        created_at = _parse_timestamp(record["created_at"])
        expires_at = _parse_timestamp(record["expires_at"])
        return cls(
            key=key,
            payload=record.get("payload"),
            created_at=created_at,
            expires_at=expires_at,
            type_tag=record.get("type_tag"),
        )


def _parse_timestamp(value: Any) -> datetime:
    parsed = datetime.fromisoformat(value)
    # Records written without an offset are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class CacheStatistics:
    """Point-in-time view of cache effectiveness and size."""
    total_items: int = 0
    expired_items: int = 0
    total_size_bytes: int = 0
    last_cleanup: Optional[datetime] = None
    hit_count: int = 0
    miss_count: int = 0

    @property
    def total_requests(self) -> int:
        return self.hit_count + self.miss_count

    @property
    def hit_ratio(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hit_count / self.total_requests
