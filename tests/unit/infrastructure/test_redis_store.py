"""Tests for RedisLinkStore with a mocked redis.asyncio client."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cipherbox.domain.exceptions import CacheWriteError
from cipherbox.infrastructure.cache.redis_adapter import RedisLinkStore

_SOURCE = "https://www.terabox.com/s/1abc"
_KEY = f"link:{_SOURCE}"


@pytest.fixture()
def client() -> AsyncMock:
    c = AsyncMock()
    c.hgetall = AsyncMock(return_value={})
    c.hset = AsyncMock(return_value=1)
    c.aclose = AsyncMock()
    return c


@pytest.fixture()
def store(client: AsyncMock) -> RedisLinkStore:
    return RedisLinkStore(client=client)


class TestGetRecord:
    async def test_missing(self, store: RedisLinkStore, client: AsyncMock) -> None:
        assert await store.get_record(_SOURCE) is None
        client.hgetall.assert_awaited_once_with(_KEY)

    async def test_decodes_hash(
        self, store: RedisLinkStore, client: AsyncMock, now: datetime
    ) -> None:
        client.hgetall.return_value = {
            "source_url": _SOURCE,
            "download_url": "https://d.terabox.com/a",
            "expires_at": (now + timedelta(hours=1)).isoformat(),
            "fetched_at": now.isoformat(),
            "size_bytes": "42",
            "last_error": "",
        }

        record = await store.get_record(_SOURCE)

        assert record is not None
        assert record.download_url == "https://d.terabox.com/a"
        assert record.expires_at == now + timedelta(hours=1)
        assert record.size_bytes == 42
        assert record.last_error is None

    async def test_corrupt_hash_reads_as_missing(
        self, store: RedisLinkStore, client: AsyncMock
    ) -> None:
        client.hgetall.return_value = {"source_url": _SOURCE, "expires_at": "garbage"}
        assert await store.get_record(_SOURCE) is None

    async def test_read_error_wrapped(
        self, store: RedisLinkStore, client: AsyncMock
    ) -> None:
        client.hgetall.side_effect = RedisConnectionError("down")
        with pytest.raises(CacheWriteError):
            await store.get_record(_SOURCE)


class TestWrites:
    async def test_upsert_single_hset(
        self, store: RedisLinkStore, client: AsyncMock, now: datetime
    ) -> None:
        await store.upsert_link(
            _SOURCE,
            download_url="https://d.terabox.com/a",
            expires_at=now,
            fetched_at=now,
            size_bytes=None,
        )

        client.hset.assert_awaited_once_with(
            _KEY,
            mapping={
                "source_url": _SOURCE,
                "download_url": "https://d.terabox.com/a",
                "expires_at": now.isoformat(),
                "fetched_at": now.isoformat(),
                "size_bytes": "",
                "last_error": "",
            },
        )

    async def test_failure_touches_only_error_fields(
        self, store: RedisLinkStore, client: AsyncMock, now: datetime
    ) -> None:
        await store.record_failure(_SOURCE, reason="no-download-found", fetched_at=now)

        mapping = client.hset.await_args.kwargs["mapping"]
        assert set(mapping) == {"source_url", "last_error", "fetched_at"}
        assert mapping["last_error"] == "no-download-found"

    async def test_write_error_wrapped(
        self, store: RedisLinkStore, client: AsyncMock, now: datetime
    ) -> None:
        client.hset.side_effect = RedisConnectionError("down")
        with pytest.raises(CacheWriteError):
            await store.record_failure(_SOURCE, reason="x", fetched_at=now)


class TestLifecycle:
    async def test_requires_client(self) -> None:
        with pytest.raises(RuntimeError):
            await RedisLinkStore().get_record(_SOURCE)

    async def test_aclose(self, store: RedisLinkStore, client: AsyncMock) -> None:
        await store.aclose()
        client.aclose.assert_awaited_once()
        with pytest.raises(RuntimeError):
            await store.get_record(_SOURCE)
