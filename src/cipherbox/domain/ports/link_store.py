"""Link Store Port - persistence collaborator for cached download links."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from cipherbox.domain.entities.links import CacheRecord


@runtime_checkable
class LinkStorePort(Protocol):
    """Keyed record store with atomic insert-or-update per source URL.

    Implementations:
      - DiskcacheLinkStore (SQLite-based, no daemon)
      - RedisLinkStore (Redis async client)

    Each write is a single conflict-aware operation: concurrent writers for
    the same key never interleave partial updates.
    """

    async def get_record(self, source_url: str) -> CacheRecord | None:
        """Point lookup. None = no record for this URL."""
        ...

    async def upsert_link(
        self,
        source_url: str,
        *,
        download_url: str,
        expires_at: datetime | None,
        fetched_at: datetime,
        size_bytes: int | None,
    ) -> None:
        """Insert or overwrite link fields and clear ``last_error``."""
        ...

    async def record_failure(
        self, source_url: str, *, reason: str, fetched_at: datetime
    ) -> None:
        """Insert or set ``last_error``/``fetched_at``, keeping link fields."""
        ...

    async def aclose(self) -> None:
        """Cleanup hook (e.g. close Redis connection)."""
        ...

    async def __aenter__(self) -> LinkStorePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
