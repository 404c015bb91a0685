"""Download-link use case: cached lookup with ordered-proxy resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog

from cipherbox.domain.entities.links import (
    CacheRecord,
    ExhaustedResolution,
    LinkResult,
    ResolvedLink,
)
from cipherbox.domain.exceptions import InvalidSourceUrlError, NoDownloadLinkError

if TYPE_CHECKING:
    from cipherbox.infrastructure.metrics import MetricsCollector
    from cipherbox.infrastructure.persistence.link_cache import LinkCache
    from cipherbox.infrastructure.proxies.orchestrator import ResolutionOrchestrator

log = structlog.get_logger(__name__)

FAILURE_REASON = "no-download-found"


def validate_source_url(source_url: str | None) -> str:
    """Return the stripped URL or raise ``InvalidSourceUrlError``."""
    if not source_url or not source_url.strip():
        raise InvalidSourceUrlError("Missing source URL")
    url = source_url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidSourceUrlError(f"Not an absolute http(s) URL: {url!r}")
    return url


class ResolutionService:
    """Public entry point for "get download link" and "force refresh".

    Flow:
        1. Validate the source URL
        2. Return the cached link while it is fresh (no upstream calls)
        3. Otherwise resolve through the proxy chain
        4. Persist the outcome (link or failure) and return / raise
    """

    def __init__(
        self,
        orchestrator: ResolutionOrchestrator,
        link_cache: LinkCache,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.link_cache = link_cache
        self._metrics = metrics

    async def get_download_link(self, source_url: str) -> LinkResult:
        """Cached link if still fresh, otherwise a freshly resolved one.

        Raises:
            InvalidSourceUrlError: malformed or missing URL.
            NoDownloadLinkError: every proxy failed.
            CacheWriteError: the store failed.
        """
        url = validate_source_url(source_url)

        record = await self.link_cache.get(url)
        if record is not None and self.link_cache.is_fresh(record):
            self._record_lookup(hit=True)
            log.info("download_link_cache_hit", source_url=url)
            return LinkResult(
                source="cache",
                download_url=record.download_url or "",
                expires_at=record.expires_at,
                size_bytes=record.size_bytes,
            )

        self._record_lookup(hit=False)
        log.info(
            "download_link_cache_miss",
            source_url=url,
            has_record=record is not None,
        )
        return await self._resolve_and_store(url)

    async def lookup_record(self, source_url: str) -> CacheRecord | None:
        """Stored record for ``source_url``; never resolves, never counts."""
        return await self.link_cache.get(validate_source_url(source_url))

    async def force_refresh(self, source_url: str) -> LinkResult:
        """Resolve through the proxy chain regardless of the cached state."""
        url = validate_source_url(source_url)
        if self._metrics is not None:
            self._metrics.record_forced_refresh()
        log.info("download_link_force_refresh", source_url=url)
        return await self._resolve_and_store(url)

    async def _resolve_and_store(self, url: str) -> LinkResult:
        outcome = await self.orchestrator.resolve(url)

        if isinstance(outcome, ExhaustedResolution):
            if self._metrics is not None:
                self._metrics.record_exhaustion()
            await self.link_cache.record_failure(url, FAILURE_REASON)
            raise NoDownloadLinkError(url)

        await self.link_cache.upsert(url, outcome)
        return _fresh_result(outcome)

    def _record_lookup(self, *, hit: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_cache_lookup(hit=hit)


def _fresh_result(link: ResolvedLink) -> LinkResult:
    return LinkResult(
        source="fresh",
        download_url=link.download_url,
        expires_at=link.expires_at,
        size_bytes=link.size_bytes,
        proxy=link.source_proxy_name,
        metadata=link.metadata,
    )
