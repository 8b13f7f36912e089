"""
Services Module - Client Layer

Provides the account client, per-index operations and metadata caching.
"""

from indextank.services.client import IndexTankClient
from indextank.services.index_service import Index
from indextank.services.cache_service import CacheService

__all__ = [
    "IndexTankClient",
    "Index",
    "CacheService",
]
