"""
app/services/cache_service.py

In-process expiring cache for dashboard aggregates.
"""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class _CacheEntry:
    value: Any
    inserted_at: float
    ttl_seconds: float


class TTLCache:
    """
    Key -> (value, inserted_at, ttl) map with lazy expiry on read.

    Expired entries are dropped when they are next looked up; there is no
    background eviction.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl_seconds = max(0.0, default_ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self._default_ttl_seconds if ttl_seconds is None else max(0.0, ttl_seconds)
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, inserted_at=self._clock(), ttl_seconds=ttl)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> None:
        """
        Drop every key matching the regular expression (``re.search``).
        """

        regex = re.compile(pattern)
        with self._lock:
            for key in [key for key in self._entries if regex.search(key)]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cached(self, key: str, fetch: Callable[[], T], ttl_seconds: float | None = None) -> T:
        """
        Return the cached value for ``key`` or compute, store and return it.

        None results are not cached.
        """

        value = self.get(key)
        if value is not None:
            return value

        value = fetch()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def _live_entry(self, key: str) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at > entry.ttl_seconds:
            del self._entries[key]
            return None
        return entry
