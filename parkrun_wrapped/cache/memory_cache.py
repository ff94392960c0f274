"""In-memory TTL tier."""

import copy
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..models import ResultSet


@dataclass
class CacheEntry:
    key: str
    data: ResultSet
    timestamp: float


class MemoryCache:
    """Process-local cache; entries older than ``ttl_seconds`` are ignored.

    Values are deep-copied on the way in and out so callers never share
    state with the cache.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ResultSet]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry.timestamp >= self.ttl_seconds:
                return None
            return copy.deepcopy(entry.data)

    def set(self, key: str, data: ResultSet) -> None:
        entry = CacheEntry(key=key, data=copy.deepcopy(data), timestamp=self.clock())
        with self._lock:
            self._entries[key] = entry

    def entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
