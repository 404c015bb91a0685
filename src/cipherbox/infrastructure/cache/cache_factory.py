"""Store factory - builds the link store backend selected in config."""

from __future__ import annotations

from typing import Literal

import structlog

from cipherbox.domain.ports.link_store import LinkStorePort
from cipherbox.infrastructure.cache.diskcache_adapter import DiskcacheLinkStore
from cipherbox.infrastructure.cache.redis_adapter import RedisLinkStore

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]


def create_link_store(
    backend: CacheBackend = "diskcache",
    *,
    # Diskcache-Config
    directory: str = "./cache",
    # Redis-Config
    redis_url: str = "redis://localhost:6379/0",
    # Shared Config
    key_prefix: str = "link:",
    max_concurrent: int = 10,
) -> LinkStorePort:
    """Create the link store for ``backend``.

    Args:
        backend: "diskcache" (SQLite) or "redis".
        directory: Diskcache path.
        redis_url: Redis connection string.
        key_prefix: Namespace for record keys (both backends).
        max_concurrent: Semaphore limit for diskcache (Redis uses 50).

    Returns:
        LinkStorePort implementation (DiskcacheLinkStore or RedisLinkStore).

    Raises:
        ValueError: If `backend` is unknown.
    """
    if backend == "diskcache":
        log.info(
            "store_factory_create",
            backend=backend,
            directory=directory,
            max_concurrent=max_concurrent,
        )
        return DiskcacheLinkStore(
            directory=directory,
            key_prefix=key_prefix,
            max_concurrent=max_concurrent,
        )
    elif backend == "redis":
        log.info(
            "store_factory_create",
            backend=backend,
            url=redis_url,
            max_concurrent=50,
        )
        return RedisLinkStore(
            url=redis_url,
            key_prefix=key_prefix,
            max_concurrent=50,
        )
    else:
        raise ValueError(
            f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'redis'."
        )
