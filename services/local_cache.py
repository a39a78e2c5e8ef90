"""
In-process device data cache.

Entries are immutable once written, so concurrent writers racing on the same
key are harmless: both write equal values. The default cache is unbounded for
the life of the process; BoundedLocalCache is the drop-in variant for when
memory has to be capped.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Dict, Optional


class LocalCache:
    """Unbounded process-local cache with {get, put}."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def put(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def __len__(self) -> int:
        return len(self._entries)


class BoundedLocalCache(LocalCache):
    """Least-recently-used eviction once `max_entries` is reached."""

    def __init__(self, max_entries: int) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._max_entries = max_entries
        self._lru: "OrderedDict[str, Any]" = OrderedDict()
        self._mutex = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._mutex:
            if key not in self._lru:
                return None
            self._lru.move_to_end(key)
            return self._lru[key]

    def put(self, key: str, value: Any) -> None:
        with self._mutex:
            self._lru[key] = value
            self._lru.move_to_end(key)
            while len(self._lru) > self._max_entries:
                self._lru.popitem(last=False)

    def __len__(self) -> int:
        return len(self._lru)


def build_local_cache(max_entries: int = 0) -> LocalCache:
    """0 (the default) keeps the cache unbounded."""

    if max_entries > 0:
        return BoundedLocalCache(max_entries)
    return LocalCache()


__all__ = ["BoundedLocalCache", "LocalCache", "build_local_cache"]
