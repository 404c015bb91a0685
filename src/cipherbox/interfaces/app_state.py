"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from cipherbox.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from cipherbox.application.use_cases import ResolutionService
    from cipherbox.domain.ports import LinkStorePort
    from cipherbox.infrastructure.metrics import MetricsCollector
    from cipherbox.infrastructure.persistence.link_cache import LinkCache
    from cipherbox.infrastructure.proxies import ResolutionOrchestrator


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    link_store: LinkStorePort
    http_client: httpx.AsyncClient

    # Resolution pipeline
    orchestrator: ResolutionOrchestrator
    link_cache: LinkCache

    # Application Services
    resolution_service: ResolutionService

    # Metrics (in-memory counters)
    metrics: MetricsCollector
