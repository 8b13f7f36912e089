"""
Services - Cache Service

TTL-based caching of index metadata and scoring function listings.
"""

from typing import Any, Optional
from cachetools import TTLCache
import threading

from indextank.config import get_settings


class CacheService:
    """TTL cache for metadata that the service itself refreshes lazily."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()

        self._metadata_cache = TTLCache(
            maxsize=self.settings.cache.max_entries,
            ttl=self.settings.cache.ttl_metadata,
        )

    @staticmethod
    def index_key(index_name: str) -> str:
        return f"index:{index_name}"

    @staticmethod
    def functions_key(index_name: str) -> str:
        return f"functions:{index_name}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key (``index:<name>`` or ``functions:<name>``)

        Returns:
            Cached value or None
        """
        if not self.settings.cache.enabled:
            return None

        with self._lock:
            return self._metadata_cache.get(key)

    def set(self, key: str, value: Any) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
        """
        if not self.settings.cache.enabled:
            return

        with self._lock:
            self._metadata_cache[key] = value

    def delete(self, key: str) -> None:
        """Delete a key from cache."""
        with self._lock:
            if key in self._metadata_cache:
                del self._metadata_cache[key]

    def invalidate_index(self, index_name: str) -> None:
        """Forget everything cached for an index."""
        with self._lock:
            for key in (self.index_key(index_name), self.functions_key(index_name)):
                if key in self._metadata_cache:
                    del self._metadata_cache[key]

    def clear_all(self) -> None:
        """Clear the cache."""
        with self._lock:
            self._metadata_cache.clear()

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "size": len(self._metadata_cache),
            "maxsize": self._metadata_cache.maxsize,
            "ttl": self._metadata_cache.ttl,
            "enabled": self.settings.cache.enabled,
        }
