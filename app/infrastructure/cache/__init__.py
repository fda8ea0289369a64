"""Local caching for data sources."""

from infrastructure.cache.base import LocalCache
from infrastructure.cache.memory import InMemoryCache

__all__ = ["LocalCache", "InMemoryCache"]
