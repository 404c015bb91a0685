"""Domain entities for download-link resolution.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

ProxyMethod = Literal["GET", "POST"]
ProxyEncoding = Literal["json", "query", "form"]
LinkSource = Literal["cache", "fresh"]

RAW_TEXT_KEY = "rawText"


@dataclass(frozen=True)
class ProxyDescriptor:
    """Static calling convention for one external proxy.

    An ordered sequence of descriptors defines fallback priority
    (first entry = highest priority).
    """

    name: str
    endpoint: str  # Absolute URL or path on the local proxy layer
    method: ProxyMethod = "POST"
    encoding: ProxyEncoding = "json"
    field_name: str = "url"
    headers: dict[str, str] = field(default_factory=dict)
    enabled: bool = True


@dataclass(frozen=True)
class ProxyResponse:
    """Raw result of one successful (2xx) proxy call."""

    proxy_name: str
    status_code: int
    payload: dict[str, Any]

    @property
    def is_raw_text(self) -> bool:
        return RAW_TEXT_KEY in self.payload and len(self.payload) == 1


@dataclass(frozen=True)
class ProxyFailure:
    """Soft, per-proxy failure. Never raised, always recovered by fallback."""

    proxy_name: str
    reason: str
    status_code: int | None = None


@dataclass(frozen=True)
class MediaMetadata:
    """Optional descriptive fields some proxies return alongside the link."""

    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    duration: int | None = None  # seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("title", self.title),
                ("description", self.description),
                ("thumbnail", self.thumbnail),
                ("duration", self.duration),
            )
            if value is not None
        }


@dataclass(frozen=True)
class NormalizedResponse:
    """Canonical view of a proxy payload with a usable download link."""

    download_url: str
    size_bytes: int | None = None
    raw_fields: dict[str, Any] = field(default_factory=dict)
    metadata: MediaMetadata = field(default_factory=MediaMetadata)


@dataclass(frozen=True)
class ResolvedLink:
    """Outcome of one successful resolution pass."""

    download_url: str
    expires_at: datetime
    source_proxy_name: str
    size_bytes: int | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)
    metadata: MediaMetadata = field(default_factory=MediaMetadata)


@dataclass(frozen=True)
class ExhaustedResolution:
    """Every configured proxy failed for a source URL."""

    source_url: str
    attempted: tuple[str, ...] = ()
    reason: str = "no proxy produced a usable link"


@dataclass(frozen=True)
class CacheRecord:
    """Persisted per-source-URL cache entry (source_url is the natural key)."""

    source_url: str
    download_url: str | None = None
    expires_at: datetime | None = None
    fetched_at: datetime | None = None
    size_bytes: int | None = None
    last_error: str | None = None

    def is_fresh(self, now: datetime | None = None) -> bool:
        """True if a link is present and not yet expired.

        A missing ``expires_at`` counts as still valid. The comparison is
        strict: a record expiring exactly at ``now`` is stale.
        """
        if not self.download_url:
            return False
        if self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at


@dataclass(frozen=True)
class LinkResult:
    """Response shape handed to the HTTP layer."""

    source: LinkSource
    download_url: str
    expires_at: datetime | None = None
    size_bytes: int | None = None
    proxy: str | None = None
    metadata: MediaMetadata = field(default_factory=MediaMetadata)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source,
            "downloadUrl": self.download_url,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }
        if self.size_bytes is not None:
            data["sizeBytes"] = self.size_bytes
        if self.proxy is not None:
            data["proxy"] = self.proxy
        data.update(self.metadata.to_dict())
        return data
