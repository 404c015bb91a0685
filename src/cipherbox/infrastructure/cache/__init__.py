"""Link store backends (persistence collaborators for LinkCache)."""

from .cache_factory import CacheBackend, create_link_store
from .diskcache_adapter import DiskcacheLinkStore
from .redis_adapter import RedisLinkStore

__all__ = [
    "CacheBackend",
    "DiskcacheLinkStore",
    "RedisLinkStore",
    "create_link_store",
]
