"""Port for performing one resolution attempt against an external proxy."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cipherbox.domain.entities.links import (
    ProxyDescriptor,
    ProxyFailure,
    ProxyResponse,
)


@runtime_checkable
class ProxyAdapterPort(Protocol):
    """Sends a source URL to one proxy using the descriptor's calling convention.

    Implementations MUST NOT raise for transport or HTTP problems; every
    error path returns a ``ProxyFailure`` so the caller can fall back.
    """

    async def attempt(
        self, descriptor: ProxyDescriptor, source_url: str
    ) -> ProxyResponse | ProxyFailure: ...
