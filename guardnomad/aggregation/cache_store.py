"""In-memory result cache with TTL on read and oldest-first eviction.

Eviction follows insertion order, not access order: when the store is full,
the entry stamped longest ago is dropped before a new key is inserted.
Overwriting a key re-stamps it and moves it to the newest position.
Stale entries are treated as absent on read and are only removed by eviction,
overwrite or purge_expired().
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from cachetools import FIFOCache

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    fingerprint: str
    value: Any
    inserted_at: float = field(default_factory=time.monotonic)


class _FIFOStore(FIFOCache):
    """FIFOCache that reports every eviction."""

    def __init__(self, maxsize: int, on_evict: Callable[[str], None]):
        super().__init__(maxsize=maxsize)
        self._on_evict = on_evict

    def popitem(self):
        key, entry = super().popitem()
        self._on_evict(key)
        return key, entry


class CacheStore:
    """Fingerprint → result store, bounded by TTL and population."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 50,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._store = _FIFOStore(max_entries, self._record_eviction)
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _record_eviction(self, fingerprint: str) -> None:
        self._evictions += 1
        logger.debug("Cache EVICT | cache=%s | key=%s", self.name, fingerprint[:20])

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at < self.ttl

    def get(self, fingerprint: str) -> Any | None:
        """Return the cached value, or None when absent or stale."""
        entry = self._store.get(fingerprint)
        if entry is None or not self._is_fresh(entry):
            self._misses += 1
            return None
        self._hits += 1
        logger.debug("Cache HIT | cache=%s | key=%s", self.name, fingerprint[:20])
        return entry.value

    def set(self, fingerprint: str, value: Any) -> None:
        """Insert or overwrite an entry stamped with the current time."""
        entry = CacheEntry(fingerprint=fingerprint, value=value, inserted_at=self._clock())
        self._store[fingerprint] = entry
        logger.debug("Cache SET | cache=%s | key=%s | size=%d", self.name, fingerprint[:20], len(self._store))

    def purge_expired(self) -> int:
        """Drop every stale entry. Returns the number removed."""
        stale = [key for key, entry in self._store.items() if not self._is_fresh(entry)]
        for key in stale:
            del self._store[key]
        if stale:
            logger.info("Cache purged %d expired entries | cache=%s", len(stale), self.name)
        return len(stale)

    def clear(self) -> None:
        self._store.clear()
        logger.info("Cache cleared | cache=%s", self.name)

    def __len__(self) -> int:
        return len(self._store)

    def stats(self) -> dict[str, Any]:
        return {
            "entries": len(self._store),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }
