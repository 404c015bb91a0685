"""Tests for HttpxProxyAdapter calling conventions and failure mapping."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncIterator
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from cipherbox.domain.entities import ProxyDescriptor, ProxyFailure, ProxyResponse
from cipherbox.infrastructure.proxies.adapter import HttpxProxyAdapter

_BASE = "http://proxy.local"
_SOURCE = "https://www.terabox.com/s/1abc"


def _adapter(client: httpx.AsyncClient) -> HttpxProxyAdapter:
    return HttpxProxyAdapter(client, base_url=_BASE, timeout=5.0)


class TestBuildUrl:
    def test_relative_joined_onto_base(self) -> None:
        adapter = HttpxProxyAdapter(httpx.AsyncClient(), base_url="http://localhost:5000")
        assert (
            adapter.build_url("/api/tera-fast-proxy")
            == "http://localhost:5000/api/tera-fast-proxy"
        )

    def test_absolute_untouched(self) -> None:
        adapter = HttpxProxyAdapter(httpx.AsyncClient(), base_url="http://localhost:5000")
        assert adapter.build_url("https://p.example.com/x") == "https://p.example.com/x"

    def test_no_base_url(self) -> None:
        adapter = HttpxProxyAdapter(httpx.AsyncClient())
        assert adapter.build_url("/api/x") == "/api/x"


class TestCallingConventions:
    @respx.mock
    async def test_get_query(self) -> None:
        route = respx.get(f"{_BASE}/api/q").respond(
            200, json={"link": "https://cdn.example.com/a"}
        )
        descriptor = ProxyDescriptor(
            name="q", endpoint="/api/q", method="GET", encoding="query"
        )

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyResponse)
        assert result.payload == {"link": "https://cdn.example.com/a"}
        assert route.calls.last.request.url.params["url"] == _SOURCE

    @respx.mock
    async def test_get_without_query_encoding_sends_no_param(self) -> None:
        route = respx.get(f"{_BASE}/api/plain").respond(200, json={})
        descriptor = ProxyDescriptor(
            name="plain", endpoint="/api/plain", method="GET", encoding="json"
        )

        async with httpx.AsyncClient() as client:
            await _adapter(client).attempt(descriptor, _SOURCE)

        assert route.calls.last.request.url.query == b""

    @respx.mock
    async def test_post_json(self) -> None:
        route = respx.post(f"{_BASE}/api/j").respond(200, json={"ok": True})
        descriptor = ProxyDescriptor(name="j", endpoint="/api/j", field_name="link")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyResponse)
        request = route.calls.last.request
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"link": _SOURCE}

    @respx.mock
    async def test_post_form(self) -> None:
        route = respx.post(f"{_BASE}/api/f").respond(200, json={})
        descriptor = ProxyDescriptor(name="f", endpoint="/api/f", encoding="form")

        async with httpx.AsyncClient() as client:
            await _adapter(client).attempt(descriptor, _SOURCE)

        request = route.calls.last.request
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {"url": [_SOURCE]}

    @respx.mock
    async def test_custom_headers_sent(self) -> None:
        route = respx.post(f"{_BASE}/api/h").respond(200, json={})
        descriptor = ProxyDescriptor(
            name="h", endpoint="/api/h", headers={"X-RapidAPI-Key": "secret"}
        )

        async with httpx.AsyncClient() as client:
            await _adapter(client).attempt(descriptor, _SOURCE)

        assert route.calls.last.request.headers["x-rapidapi-key"] == "secret"


class TestPayloadDecoding:
    @respx.mock
    async def test_non_json_body_kept_as_raw_text(self) -> None:
        respx.post(f"{_BASE}/api/t").respond(200, text="<html>link</html>")
        descriptor = ProxyDescriptor(name="t", endpoint="/api/t")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyResponse)
        assert result.payload == {"rawText": "<html>link</html>"}
        assert result.is_raw_text

    @respx.mock
    async def test_json_array_kept_as_raw_text(self) -> None:
        respx.post(f"{_BASE}/api/arr").respond(200, json=["a", "b"])
        descriptor = ProxyDescriptor(name="arr", endpoint="/api/arr")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyResponse)
        assert list(result.payload) == ["rawText"]


class TestFailures:
    @pytest.mark.parametrize("status", [400, 403, 500, 502])
    @respx.mock
    async def test_non_2xx_is_soft_failure(self, status: int) -> None:
        respx.post(f"{_BASE}/api/s").respond(status, json={"error": "x"})
        descriptor = ProxyDescriptor(name="s", endpoint="/api/s")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert result == ProxyFailure(
            proxy_name="s", reason="http_status", status_code=status
        )

    @respx.mock
    async def test_timeout(self) -> None:
        respx.post(f"{_BASE}/api/slow").mock(side_effect=httpx.ReadTimeout("slow"))
        descriptor = ProxyDescriptor(name="slow", endpoint="/api/slow")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyFailure)
        assert result.reason == "timeout"

    @respx.mock
    async def test_connection_error(self) -> None:
        respx.post(f"{_BASE}/api/down").mock(side_effect=httpx.ConnectError("refused"))
        descriptor = ProxyDescriptor(name="down", endpoint="/api/down")

        async with httpx.AsyncClient() as client:
            result = await _adapter(client).attempt(descriptor, _SOURCE)

        assert isinstance(result, ProxyFailure)
        assert result.reason == "transport_error"

    async def test_slow_body_hits_total_deadline(self) -> None:
        async def trickle() -> AsyncIterator[bytes]:
            for chunk in (b'{"link": ', b'"https://cdn.example.com/a"', b"}") * 10:
                await asyncio.sleep(0.1)
                yield chunk

        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=trickle())

        descriptor = ProxyDescriptor(name="trickle", endpoint="/api/trickle")
        transport = httpx.MockTransport(handler)

        async with httpx.AsyncClient(transport=transport) as client:
            adapter = HttpxProxyAdapter(client, base_url=_BASE, timeout=0.3)
            started = time.monotonic()
            result = await adapter.attempt(descriptor, _SOURCE)
            elapsed = time.monotonic() - started

        assert result == ProxyFailure(proxy_name="trickle", reason="timeout")
        assert elapsed < 1.5
