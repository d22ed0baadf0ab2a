"""TTL Cache — small in-memory read-through cache for upstream API responses.

Invariants:
    - An entry is served only while now - stored_at < ttl
    - Size never exceeds max_size; the oldest entry is evicted first
"""

import time
from typing import Any, Callable


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: dict[str, tuple[Any, float]] = {}
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock

    def get(self, key: str):
        if key in self._cache:
            value, stored_at = self._cache[key]
            if self._clock() - stored_at < self._ttl:
                return value
            del self._cache[key]
        return None

    def set(self, key: str, value: Any):
        if key not in self._cache and len(self._cache) >= self._max_size:
            oldest = min(self._cache, key=lambda k: self._cache[k][1])
            del self._cache[oldest]
        self._cache[key] = (value, self._clock())

    def clear(self):
        self._cache.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._cache)
