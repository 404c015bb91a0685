"""Shared test fixtures for the cipherbox test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from cipherbox.domain.entities import (
    CacheRecord,
    MediaMetadata,
    ProxyDescriptor,
    ResolvedLink,
)

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    """Fixed reference instant (UTC)."""
    return NOW


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def source_url() -> str:
    return "https://www.terabox.com/s/1abcDEFghi"


@pytest.fixture()
def proxy_descriptors() -> list[ProxyDescriptor]:
    """Three proxies covering every calling convention."""
    return [
        ProxyDescriptor(name="alpha", endpoint="/api/alpha-proxy", field_name="url"),
        ProxyDescriptor(
            name="beta",
            endpoint="/api/beta-proxy",
            method="GET",
            encoding="query",
            field_name="url",
        ),
        ProxyDescriptor(
            name="gamma",
            endpoint="/api/gamma-proxy",
            encoding="form",
            field_name="link",
        ),
    ]


@pytest.fixture()
def resolved_link(now: datetime) -> ResolvedLink:
    return ResolvedLink(
        download_url="https://d.terabox.com/file/abc.mp4?fid=1",
        expires_at=now + timedelta(hours=8),
        source_proxy_name="alpha",
        size_bytes=1048576,
        raw_payload={"download_link": "https://d.terabox.com/file/abc.mp4?fid=1"},
        metadata=MediaMetadata(title="abc.mp4"),
    )


@pytest.fixture()
def fresh_record(source_url: str, now: datetime) -> CacheRecord:
    return CacheRecord(
        source_url=source_url,
        download_url="https://d.terabox.com/file/cached.mp4",
        expires_at=now + timedelta(hours=1),
        fetched_at=now - timedelta(hours=1),
        size_bytes=2048,
    )


# ---------------------------------------------------------------------------
# Port mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_link_store() -> AsyncMock:
    """AsyncMock satisfying LinkStorePort; empty by default."""
    store = AsyncMock()
    store.get_record = AsyncMock(return_value=None)
    store.upsert_link = AsyncMock(return_value=None)
    store.record_failure = AsyncMock(return_value=None)
    store.aclose = AsyncMock(return_value=None)
    return store
