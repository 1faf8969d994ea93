"""Small read-through TTL cache used by the HTTP collaborators."""

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Time-bounded key/value cache.

    Each adapter owns its own instance; pass ``clock`` to control expiry in tests.
    Safe to share between the worker threads of one adapter.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}  # key -> (value, stored_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                self._entries.pop(key, None)
                return None
        logger.debug(f"Cache hit for {key}")
        return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)

            if self.max_entries is not None and key not in self._entries:
                while self._entries and len(self._entries) >= self.max_entries:
                    oldest_key = min(self._entries, key=lambda k: self._entries[k][1])
                    del self._entries[oldest_key]

            self._entries[key] = (value, now)

    def get_or_set(self, key: Hashable, builder: Callable[[], Any]) -> Any:
        """Return the cached value or build, store and return a fresh one."""
        value = self.get(key)
        if value is None:
            value = builder()
            self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
