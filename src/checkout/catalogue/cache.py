"""Read-through cache for catalogue reads.

Entries are addressed by a structured key (entity kind, identifier, extra
parameters) rather than by string prefixes, so a write path can invalidate
exactly what it made stale: one entity, or every entry of a kind.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheKey:
    kind: str
    id: str | None = None
    params: tuple = ()


class CatalogueCache:
    """In-memory LRU cache keyed by CacheKey."""

    def __init__(self, max_size: int = 1000) -> None:
        self._max_size = max_size
        self._entries: OrderedDict[CacheKey, Any] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Any | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: CacheKey, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def invalidate(self, kind: str, id: str | None = None) -> int:
        """Drop entries of `kind`; only those for `id` when one is given.

        Returns the number of entries removed.
        """
        stale = [key for key in self._entries if key.kind == kind and (id is None or key.id == id)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


_cache: CatalogueCache | None = None


def get_cache() -> CatalogueCache:
    global _cache
    if _cache is None:
        _cache = CatalogueCache()
    return _cache


def reset_cache() -> None:
    """Drop the cache instance (useful for tests)."""
    global _cache
    _cache = None
