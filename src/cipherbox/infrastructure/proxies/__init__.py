"""Proxy adapters and the ordered-fallback resolution pipeline."""

from __future__ import annotations

from .adapter import HttpxProxyAdapter
from .expiry import ExpiryResolver
from .normalizer import ResponseNormalizer
from .orchestrator import ResolutionOrchestrator

__all__ = [
    "ExpiryResolver",
    "HttpxProxyAdapter",
    "ResolutionOrchestrator",
    "ResponseNormalizer",
]
