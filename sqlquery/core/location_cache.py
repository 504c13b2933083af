"""
Location-name -> provider-key cache
- keyed by the raw input string
- LRU eviction at max_size
- TTL expiry
"""
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CachedLocation:
    location: str
    key: str
    created_at: float = field(default_factory=time.time)
    hit_count: int = 0

    def is_expired(self, ttl_seconds: int) -> bool:
        return time.time() - self.created_at > ttl_seconds


class LocationKeyCache:
    """LRU + TTL cache of resolved location keys"""

    def __init__(self, max_size: int = 256, ttl_seconds: int = 86400):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._cache: OrderedDict[str, CachedLocation] = OrderedDict()
        self._max_size = max_size
        self._ttl_seconds = ttl_seconds
        self._total_hits = 0
        self._total_misses = 0

    def get(self, location: str) -> Optional[str]:
        entry = self._cache.get(location)
        if entry is None:
            self._total_misses += 1
            return None

        if entry.is_expired(self._ttl_seconds):
            del self._cache[location]
            self._total_misses += 1
            return None

        self._cache.move_to_end(location)
        entry.hit_count += 1
        self._total_hits += 1
        return entry.key

    def put(self, location: str, key: str) -> None:
        if location in self._cache:
            del self._cache[location]
        while len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
        self._cache[location] = CachedLocation(location=location, key=key)

    def clear(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        return count

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._total_hits + self._total_misses
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "ttl_seconds": self._ttl_seconds,
            "total_hits": self._total_hits,
            "total_misses": self._total_misses,
            "hit_rate": round(self._total_hits / lookups, 4) if lookups else 0,
        }
