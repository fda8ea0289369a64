"""In-memory local cache."""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from infrastructure.cache.base import LocalCache
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class InMemoryCache(LocalCache):
    """Process-local cache with optional per-entry expiry.

    Expired entries are evicted when read and swept on every ``set``.

    Args:
        default_ttl_seconds: TTL applied when ``set`` is called without one
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        default_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry[0]

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            swept = self._sweep_expired()
            self._entries[key] = (value, expires_at)
        if swept:
            logger.debug("cache_expired_entries_swept", entries=swept)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug("cache_cleared", entries=count)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "type": "in_memory",
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def _sweep_expired(self) -> int:
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _live_entry(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return entry
