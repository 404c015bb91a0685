"""Ordered-fallback resolution across configured proxies."""

from __future__ import annotations

import time
from collections.abc import Sequence

import structlog

from cipherbox.domain.entities.links import (
    ExhaustedResolution,
    ProxyDescriptor,
    ProxyFailure,
    ResolvedLink,
)
from cipherbox.domain.ports.proxy_adapter import ProxyAdapterPort
from cipherbox.infrastructure.metrics import MetricsCollector
from cipherbox.infrastructure.proxies.expiry import ExpiryResolver
from cipherbox.infrastructure.proxies.normalizer import ResponseNormalizer

log = structlog.get_logger(__name__)


class ResolutionOrchestrator:
    """Tries proxies one at a time in priority order; first usable link wins.

    Proxies are never raced: later proxies are only called when every earlier
    one failed, which keeps load off the tail of the list and makes the
    attribution of a link unambiguous.
    """

    def __init__(
        self,
        adapter: ProxyAdapterPort,
        proxies: Sequence[ProxyDescriptor] = (),
        *,
        normalizer: ResponseNormalizer | None = None,
        expiry_resolver: ExpiryResolver | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._adapter = adapter
        self._proxies = tuple(proxies)
        self._normalizer = normalizer or ResponseNormalizer()
        self._expiry = expiry_resolver or ExpiryResolver()
        self._metrics = metrics

    @property
    def proxies(self) -> tuple[ProxyDescriptor, ...]:
        """Configured proxies in priority order."""
        return self._proxies

    async def resolve(
        self,
        source_url: str,
        proxies: Sequence[ProxyDescriptor] | None = None,
    ) -> ResolvedLink | ExhaustedResolution:
        """Resolve ``source_url`` via the first proxy that yields a link.

        ``proxies`` overrides the configured list for this call only.
        """
        candidates = self._proxies if proxies is None else tuple(proxies)
        attempted: list[str] = []

        for descriptor in candidates:
            if not descriptor.enabled:
                log.debug("proxy_skipped_disabled", proxy=descriptor.name)
                continue

            attempted.append(descriptor.name)
            start_ns = time.perf_counter_ns()
            link = await self._try_proxy(descriptor, source_url)
            self._record(descriptor.name, start_ns, success=link is not None)

            if link is not None:
                log.info(
                    "proxy_resolve_success",
                    proxy=descriptor.name,
                    source_url=source_url,
                    expires_at=link.expires_at.isoformat(),
                    size_bytes=link.size_bytes,
                )
                return link

        log.warning(
            "proxy_resolve_exhausted",
            source_url=source_url,
            attempted=attempted,
        )
        return ExhaustedResolution(source_url=source_url, attempted=tuple(attempted))

    async def _try_proxy(
        self, descriptor: ProxyDescriptor, source_url: str
    ) -> ResolvedLink | None:
        outcome = await self._adapter.attempt(descriptor, source_url)
        if isinstance(outcome, ProxyFailure):
            log.warning(
                "proxy_attempt_failed",
                proxy=descriptor.name,
                reason=outcome.reason,
                status=outcome.status_code,
            )
            return None

        normalized = self._normalizer.normalize(outcome.payload)
        if normalized is None:
            log.warning("proxy_response_unusable", proxy=descriptor.name)
            return None

        expires_at = self._expiry.resolve_expiry(
            normalized.raw_fields, normalized.download_url
        )
        return ResolvedLink(
            download_url=normalized.download_url,
            expires_at=expires_at,
            source_proxy_name=descriptor.name,
            size_bytes=normalized.size_bytes,
            raw_payload=normalized.raw_fields,
            metadata=normalized.metadata,
        )

    def _record(self, name: str, start_ns: int, *, success: bool) -> None:
        if self._metrics is None:
            return
        self._metrics.record_proxy_attempt(
            name, time.perf_counter_ns() - start_ns, success=success
        )
