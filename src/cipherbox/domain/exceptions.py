"""Errors that cross the resolution service boundary.

Per-proxy problems are not exceptions; they travel as ``ProxyFailure`` values
and are absorbed by the ordered fallback.
"""

from __future__ import annotations


class LinkResolutionError(Exception):
    """Base class for all resolution-related errors."""


class InvalidSourceUrlError(LinkResolutionError):
    """Raised when the source URL is missing or not an absolute http(s) URL."""


class NoDownloadLinkError(LinkResolutionError):
    """Raised when every configured proxy failed to produce a usable link."""

    def __init__(self, source_url: str) -> None:
        super().__init__("No download link found")
        self.source_url = source_url


class CacheWriteError(LinkResolutionError):
    """Raised when the persistence layer fails to read or write a record."""
