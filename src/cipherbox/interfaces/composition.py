"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from cipherbox.application.use_cases import ResolutionService
from cipherbox.infrastructure.cache import create_link_store
from cipherbox.infrastructure.metrics import MetricsCollector
from cipherbox.infrastructure.persistence.link_cache import LinkCache
from cipherbox.infrastructure.proxies import (
    ExpiryResolver,
    HttpxProxyAdapter,
    ResolutionOrchestrator,
    ResponseNormalizer,
)
from cipherbox.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics (recorded into by the orchestrator and the service)
        2. Link store (required by the link cache)
        3. HTTP client (required by the proxy adapter)
        4. Resolution pipeline (adapter, normalizer, expiry, orchestrator)
        5. Link cache + resolution service
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics
    state.metrics = MetricsCollector()

    # 2) Link store
    store = create_link_store(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        key_prefix=config.cache.key_prefix,
        max_concurrent=config.cache.max_concurrent,
    )
    await store.__aenter__()
    state.link_store = store
    log.info("link_store_initialized", backend=config.cache.backend)

    # Everything opened from here on is released in reverse, also when a later
    # startup step fails.
    http_client: httpx.AsyncClient | None = None
    try:
        # 3) HTTP client (per-proxy deadline is applied per request by the adapter)
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.http_timeout_seconds),
            headers={"User-Agent": config.http_user_agent},
            follow_redirects=True,
        )
        state.http_client = http_client
        log.info("http_client_initialized", timeout=config.http_timeout_seconds)

        # 4) Resolution pipeline
        proxies = config.proxy_descriptors()
        state.orchestrator = ResolutionOrchestrator(
            HttpxProxyAdapter(
                http_client,
                base_url=config.proxy_base_url,
                timeout=config.proxy_timeout_seconds,
            ),
            proxies,
            normalizer=ResponseNormalizer(),
            expiry_resolver=ExpiryResolver(config.default_expiry_hours),
            metrics=state.metrics,
        )
        log.info(
            "resolution_pipeline_initialized",
            proxies=[p.name for p in proxies if p.enabled],
            proxy_timeout=config.proxy_timeout_seconds,
        )
        if not proxies:
            log.warning("no_proxies_configured")

        # 5) Link cache + service
        state.link_cache = LinkCache(store)
        state.resolution_service = ResolutionService(
            orchestrator=state.orchestrator,
            link_cache=state.link_cache,
            metrics=state.metrics,
        )

        log.info("app_startup_complete")
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()
            log.info("http_client_closed")

        await store.aclose()
        log.info("link_store_closed")

        log.info("app_shutdown_complete")
