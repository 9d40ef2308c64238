"""Thread-safe in-memory caches owned by engine instances."""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, List, Optional, TypeVar

V = TypeVar("V")


@dataclass
class CacheStatistics:
    """Snapshot of cache usage."""
    total_entries: int
    hits: int
    misses: int
    evictions: int

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups > 0 else 0.0


class LRUCache(Generic[V]):
    """
    Bounded least-recently-used cache guarded by a lock.

    Instances are created per engine and passed in explicitly, so sharing a
    cache between concurrent callers is an opt-in decision of the caller.
    """

    def __init__(self, max_size: int = 1000):
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self._entries: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        """Return the cached value for ``key`` or ``default``."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self._hits += 1
                return self._entries[key]
            self._misses += 1
            return default

    def set(self, key: Hashable, value: V) -> None:
        """Store ``value`` under ``key``, evicting the oldest entry when full."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = value
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
                self._evictions += 1

    def get_or_set(self, key: Hashable, factory: Callable[[], V]) -> V:
        """
        Return the cached value or compute, store and return it.

        The factory runs outside the lock; two racing callers may both
        compute the value, the last one stored wins.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self._hits += 1
                return self._entries[key]
            self._misses += 1

        value = factory()
        self.set(key, value)
        return value

    def remove(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def keys(self) -> List[Hashable]:
        with self._lock:
            return list(self._entries.keys())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_statistics(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                total_entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions
            )


class SignatureCache(LRUCache[Any]):
    """Structure signatures keyed by a normalized record-shape string."""


class TypeCache(LRUCache[Any]):
    """Inferred scalar kinds keyed by the original cell text."""
