"""Download-link cache backed by a LinkStorePort (diskcache/redis)."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from cipherbox.domain.entities.links import CacheRecord, ResolvedLink
from cipherbox.domain.ports.link_store import LinkStorePort

log = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkCache:
    """Maps a source URL to its last resolved link and decides freshness.

    Note: a record with a link but no ``expires_at`` counts as fresh forever.
    Expiry is always derived at write time, so this only affects records
    written by older versions or other tools; it favours availability.
    """

    def __init__(
        self,
        store: LinkStorePort,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self._clock = clock

    def is_fresh(self, record: CacheRecord | None) -> bool:
        """True if ``record`` holds a link that has not expired yet."""
        if record is None:
            return False
        return record.is_fresh(self._clock())

    async def get(self, source_url: str) -> CacheRecord | None:
        return await self.store.get_record(source_url)

    async def upsert(self, source_url: str, link: ResolvedLink) -> None:
        """Store a successful resolution, clearing any previous error."""
        await self.store.upsert_link(
            source_url,
            download_url=link.download_url,
            expires_at=link.expires_at,
            fetched_at=self._clock(),
            size_bytes=link.size_bytes,
        )
        log.debug(
            "link_cached",
            source_url=source_url,
            proxy=link.source_proxy_name,
            expires_at=link.expires_at.isoformat(),
        )

    async def record_failure(self, source_url: str, reason: str) -> None:
        """Remember an exhausted resolution; any previous link is kept."""
        await self.store.record_failure(
            source_url, reason=reason, fetched_at=self._clock()
        )
        log.debug("link_failure_recorded", source_url=source_url, reason=reason)
