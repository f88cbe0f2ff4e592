from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Optional, Protocol, Tuple


class CacheClient(Protocol):
    def get(self, key: str) -> Optional[bytes]:  # pragma: no cover - interface
        ...

    def set(self, key: str, value: bytes) -> None:  # pragma: no cover - interface
        ...


class MemoryCache:
    """Thread-safe in-memory cache with TTL and LRU eviction."""

    def __init__(self, ttl_seconds: int = 300, max_entries: int = 1000) -> None:
        self._lock = threading.Lock()
        self._cache: "OrderedDict[str, Tuple[bytes, float]]" = OrderedDict()
        self._ttl = ttl_seconds
        self._max_entries = max_entries

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            if key not in self._cache:
                return None
            value, stored_at = self._cache[key]
            if time.monotonic() - stored_at >= self._ttl:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return value

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (value, time.monotonic())
            while len(self._cache) > self._max_entries:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
