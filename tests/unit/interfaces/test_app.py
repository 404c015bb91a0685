"""Tests for create_app and the proxies/stats routers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from cipherbox.domain.entities import ProxyDescriptor
from cipherbox.infrastructure.config import AppConfig
from cipherbox.infrastructure.metrics import MetricsCollector
from cipherbox.interfaces.api.proxies.router import router as proxies_router
from cipherbox.interfaces.api.stats.router import router as stats_router
from cipherbox.interfaces.app import create_app

_PREFIX = "/api/v1"


class TestCreateApp:
    def test_healthz(self, tmp_path: Path) -> None:
        config = AppConfig.model_validate(
            {
                "environment": "test",
                "cache": {"dir": str(tmp_path)},
                "proxies": [
                    {"name": "a", "url": "/api/a"},
                    {"name": "b", "url": "/api/b", "enabled": False},
                ],
            }
        )
        # No context manager: lifespan (and its resources) is not started.
        client = TestClient(create_app(config))

        resp = client.get(f"{_PREFIX}/healthz")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "proxies": 1}

    def test_routes_registered(self, tmp_path: Path) -> None:
        config = AppConfig.model_validate({"cache": {"dir": str(tmp_path)}})
        paths = set(create_app(config).openapi()["paths"])
        assert {
            f"{_PREFIX}/download",
            f"{_PREFIX}/download/refresh",
            f"{_PREFIX}/download/record",
            f"{_PREFIX}/proxies",
            f"{_PREFIX}/stats/metrics",
            f"{_PREFIX}/healthz",
        } <= paths


class TestProxiesRouter:
    def test_lists_in_priority_order(self) -> None:
        app = FastAPI()
        app.include_router(proxies_router, prefix=_PREFIX)
        orchestrator = MagicMock()
        orchestrator.proxies = (
            ProxyDescriptor(name="first", endpoint="/api/first"),
            ProxyDescriptor(
                name="second",
                endpoint="/api/second",
                method="GET",
                encoding="query",
                headers={"X-Key": "secret"},
            ),
        )
        app.state.orchestrator = orchestrator

        resp = TestClient(app).get(f"{_PREFIX}/proxies")

        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert [p["name"] for p in body["proxies"]] == ["first", "second"]
        assert body["proxies"][1]["method"] == "GET"
        assert "secret" not in resp.text


class TestStatsRouter:
    def test_metrics_snapshot(self) -> None:
        app = FastAPI()
        app.include_router(stats_router, prefix=_PREFIX)
        metrics = MetricsCollector()
        metrics.record_proxy_attempt("p1", 2_000_000, success=True)
        metrics.record_cache_lookup(hit=False)
        app.state.metrics = metrics

        resp = TestClient(app).get(f"{_PREFIX}/stats/metrics")

        assert resp.status_code == 200
        body = resp.json()
        assert body["proxies"]["p1"]["successes"] == 1
        assert body["cache"]["misses"] == 1
