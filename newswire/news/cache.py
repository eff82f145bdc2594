"""
In-memory TTL cache for aggregated article lists.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from newswire.news.base import Article
from newswire.utils.logger import cache_log

GENERAL_CACHE_KEY = "general"
KEY_SEPARATOR = ","
DEFAULT_TTL_SECONDS = 900


def cache_key(preferences: Optional[Iterable[str]]) -> str:
    """
    Build the cache key for a preference set.

    Members are deduplicated and sorted (case-preserving), so any ordering
    of the same set yields the same key. The empty set maps to "general".

    Args:
        preferences: Topic strings, in any order

    Returns:
        Cache key string
    """
    members = sorted(set(preferences or ()))
    if not members:
        return GENERAL_CACHE_KEY
    return KEY_SEPARATOR.join(members)


@dataclass(frozen=True)
class CacheEntry:
    """Immutable snapshot of an aggregated article list."""
    articles: Tuple[Article, ...]
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at


class NewsCache:
    """
    TTL cache mapping preference keys to article snapshots.

    Expired entries are evicted lazily by `get` and in bulk by
    `sweep_expired`.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize news cache.

        Args:
            ttl_seconds: Entry lifetime in seconds
            clock: Monotonic time source (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return entry.age(now) < self.ttl

    def get(self, key: str) -> Optional[List[Article]]:
        """
        Return the cached articles for a key.

        Args:
            key: Cache key

        Returns:
            Copy of the cached list, or None on a miss. An expired entry is
            removed before returning None.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_valid(entry, self._clock()):
                del self._entries[key]
                cache_log(f"Expired on read: {key}")
                return None
        return list(entry.articles)

    def set(self, key: str, articles: Iterable[Article]) -> None:
        """Store a snapshot under key, replacing any previous entry."""
        entry = CacheEntry(articles=tuple(articles), created_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        cache_log(f"Stored {len(entry.articles)} articles under {key}")

    def invalidate(self, key: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            cache_log(f"Invalidated {key}")
        return removed

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
        cache_log("Cleared all entries")

    def sweep_expired(self) -> int:
        """
        Remove every entry whose age has reached the TTL.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if not self._is_valid(entry, now)
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            cache_log(f"Swept {len(expired)} expired entries: {', '.join(expired)}")
        return len(expired)

    def all_valid_entries(self) -> List[CacheEntry]:
        """Return non-expired entries in insertion order without evicting."""
        with self._lock:
            now = self._clock()
            return [
                entry for entry in self._entries.values()
                if self._is_valid(entry, now)
            ]

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._is_valid(entry, self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_status(self) -> dict:
        """Get cache status."""
        with self._lock:
            now = self._clock()
            return {
                "ttl_seconds": self.ttl,
                "entries": len(self._entries),
                "valid_entries": sum(
                    1 for entry in self._entries.values() if self._is_valid(entry, now)
                ),
                "keys": list(self._entries),
            }
