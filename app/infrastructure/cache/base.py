"""Local cache abstract base class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class LocalCache(ABC):
    """Abstract base class for local cache implementations.

    Data sources keep the last known copy of every entity here so it can
    be served or invalidated without a network round trip.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get the cached value for key.

        Args:
            key: Cache key, e.g. "notes:n-1".

        Returns:
            Cached value or None if not found/expired.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Cache a value.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl_seconds: Time-to-live in seconds, None to keep until removed.
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with cache statistics (implementation-specific).
        """
        pass
