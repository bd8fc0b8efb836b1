"""
Classification result cache.

Entries expire lazily: a stale entry is dropped when it is next looked up,
never by a background sweep.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..models import EmotionAnalysis

CacheKey = Tuple[str, bool]


@dataclass
class CacheEntry:
    """A cached classification."""
    value: EmotionAnalysis
    stored_at: float


@dataclass
class CacheStats:
    """Statistics for the classification cache."""
    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class ClassificationCache:
    """
    Memoizes classifications by ``(text, use_ai)``.

    When ``max_entries`` is positive, inserting into a full cache evicts the
    oldest insertion. ``max_entries=0`` leaves the cache unbounded.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._stats = CacheStats()

    def get(self, text: str, use_ai: bool) -> Optional[EmotionAnalysis]:
        """Get a cached analysis, dropping it if it has expired."""
        key = (text, use_ai)
        entry = self._entries.get(key)

        if entry is None:
            self._stats.misses += 1
            return None

        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            self._stats.misses += 1
            self._stats.expirations += 1
            return None

        self._stats.hits += 1
        return entry.value

    def set(self, text: str, use_ai: bool, analysis: EmotionAnalysis) -> None:
        """Store an analysis."""
        key = (text, use_ai)
        if key in self._entries:
            del self._entries[key]

        if self.max_entries > 0:
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
                self._stats.evictions += 1

        self._entries[key] = CacheEntry(value=analysis, stored_at=self._clock())
        self._stats.sets += 1

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "evictions": self._stats.evictions,
            "expirations": self._stats.expirations,
            "hit_rate": round(self._stats.hit_rate, 3),
        }
