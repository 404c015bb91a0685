"""httpx-based proxy adapter: one resolution attempt per call.

Calling conventions (from ``ProxyDescriptor``):
    GET  + query  -> ``GET endpoint?{field}=<source_url>``
    POST + json   -> ``POST endpoint`` with body ``{"{field}": "<source_url>"}``
    POST + form   -> ``POST endpoint`` with body ``{field}=<urlencoded source_url>``

Relative endpoints (``/api/tera-fast-proxy``) are joined onto the configured
base URL of the local proxy layer.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from cipherbox.domain.entities.links import (
    RAW_TEXT_KEY,
    ProxyDescriptor,
    ProxyFailure,
    ProxyResponse,
)

log = structlog.get_logger(__name__)

# Total deadline for a single proxy call, body and redirects included (seconds)
_DEFAULT_TIMEOUT = 5.0


class HttpxProxyAdapter:
    """Performs a single proxy call and never raises past its boundary."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str = "",
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http_client
        self._base_url = base_url
        self._timeout = timeout

    def build_url(self, endpoint: str) -> str:
        """Resolve a descriptor endpoint to an absolute URL."""
        if endpoint.startswith(("http://", "https://")) or not self._base_url:
            return endpoint
        return str(httpx.URL(self._base_url).join(endpoint))

    async def attempt(
        self, descriptor: ProxyDescriptor, source_url: str
    ) -> ProxyResponse | ProxyFailure:
        """Send ``source_url`` to the proxy and return its decoded payload."""
        url = self.build_url(descriptor.endpoint)
        try:
            resp = await asyncio.wait_for(
                self._send(descriptor, url, source_url), timeout=self._timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            log.warning("proxy_timeout", proxy=descriptor.name, timeout=self._timeout)
            return ProxyFailure(proxy_name=descriptor.name, reason="timeout")
        except httpx.HTTPError as exc:
            log.warning(
                "proxy_http_error",
                proxy=descriptor.name,
                error=str(exc),
            )
            return ProxyFailure(proxy_name=descriptor.name, reason="transport_error")
        except Exception:
            log.exception("proxy_request_error", proxy=descriptor.name, url=url)
            return ProxyFailure(proxy_name=descriptor.name, reason="request_error")

        if not resp.is_success:
            log.warning(
                "proxy_http_status",
                proxy=descriptor.name,
                status=resp.status_code,
            )
            return ProxyFailure(
                proxy_name=descriptor.name,
                reason="http_status",
                status_code=resp.status_code,
            )

        return ProxyResponse(
            proxy_name=descriptor.name,
            status_code=resp.status_code,
            payload=_decode_payload(resp),
        )

    async def _send(
        self, descriptor: ProxyDescriptor, url: str, source_url: str
    ) -> httpx.Response:
        headers = dict(descriptor.headers)

        if descriptor.method == "GET":
            params = (
                {descriptor.field_name: source_url}
                if descriptor.encoding == "query"
                else None
            )
            return await self._http.get(
                url, params=params, headers=headers, timeout=self._timeout
            )

        if descriptor.encoding == "json":
            return await self._http.post(
                url,
                json={descriptor.field_name: source_url},
                headers=headers,
                timeout=self._timeout,
            )

        return await self._http.post(
            url,
            data={descriptor.field_name: source_url},
            headers=headers,
            timeout=self._timeout,
        )


def _decode_payload(resp: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body; anything else is kept as raw text."""
    try:
        data = resp.json()
    except ValueError:
        return {RAW_TEXT_KEY: resp.text}
    if isinstance(data, dict):
        return data
    return {RAW_TEXT_KEY: resp.text}
