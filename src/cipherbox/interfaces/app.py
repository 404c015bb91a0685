"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from cipherbox.infrastructure.config import AppConfig
from cipherbox.interfaces.app_state import AppState
from cipherbox.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, link store, resolution pipeline) are created in
    lifespan().
    """
    app = FastAPI(
        title="Cipherbox",
        description="Direct download link resolution through ordered proxies",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from cipherbox.interfaces.api.download.router import router as download_router
    from cipherbox.interfaces.api.proxies.router import router as proxies_router
    from cipherbox.interfaces.api.stats.router import router as stats_router

    app.include_router(download_router, prefix="/api/v1")
    app.include_router(proxies_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe: 200 as long as the process is running."""
        return {
            "status": "ok",
            "proxies": sum(1 for p in config.proxies if p.enabled),
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
