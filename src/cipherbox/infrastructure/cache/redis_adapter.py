"""Redis link store - one hash per source URL via redis.asyncio."""

from __future__ import annotations

import asyncio
from datetime import datetime

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from cipherbox.domain.entities.links import CacheRecord
from cipherbox.domain.exceptions import CacheWriteError
from cipherbox.infrastructure.cache.records import (
    decode_record,
    failure_fields,
    link_fields,
)

log = structlog.get_logger(__name__)


class RedisLinkStore:
    """Async Redis record store with connection pooling via semaphore.

    - Uses `redis.asyncio.Redis` (async-native, no to_thread needed).
    - Each record is a hash; every write is one `HSET` that touches only the
      fields being changed, so concurrent writers never interleave.
    - Semaphore limits parallel Redis ops (prevents connection exhaustion).

    Args:
        url: Redis URL (e.g. `redis://localhost:6379/0`).
        key_prefix: Namespace for record keys.
        max_concurrent: Max parallel Redis ops (default: 50, tunable).
        client: Pre-built client (tests, shared pools).
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        key_prefix: str = "link:",
        max_concurrent: int = 50,
        client: Redis | None = None,
    ) -> None:
        self.url = url
        self.key_prefix = key_prefix
        self._client: Redis | None = client
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "redis_store_init",
            url=url,
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> RedisLinkStore:
        """Initialize Redis client (connection pool)."""
        if self._client is None:
            self._client = Redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )
            # Health-Check: PING
            try:
                await self._client.ping()
                log.info("redis_connected", url=self.url)
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cleanup: close Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _key(self, source_url: str) -> str:
        return f"{self.key_prefix}{source_url}"

    def _require_client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with store:'")
        return self._client

    # --- LinkStorePort implementation ---
    async def get_record(self, source_url: str) -> CacheRecord | None:
        """HGETALL one record."""
        client = self._require_client()
        key = self._key(source_url)

        async with self._semaphore:
            try:
                data = await client.hgetall(key)
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                raise CacheWriteError(f"Failed to read record: {e}") from e

        if not data:
            log.debug("store_miss", key=key)
            return None
        try:
            record = decode_record(data)
        except (KeyError, ValueError) as e:
            log.error("store_record_corrupt", key=key, error=str(e))
            return None
        log.debug("store_hit", key=key)
        return record

    async def upsert_link(
        self,
        source_url: str,
        *,
        download_url: str,
        expires_at: datetime | None,
        fetched_at: datetime,
        size_bytes: int | None,
    ) -> None:
        """HSET all link fields, clearing ``last_error``."""
        await self._hset(
            source_url,
            link_fields(
                source_url,
                download_url=download_url,
                expires_at=expires_at,
                fetched_at=fetched_at,
                size_bytes=size_bytes,
            ),
        )

    async def record_failure(
        self, source_url: str, *, reason: str, fetched_at: datetime
    ) -> None:
        """HSET ``last_error``/``fetched_at`` only."""
        await self._hset(
            source_url,
            failure_fields(source_url, reason=reason, fetched_at=fetched_at),
        )

    async def _hset(self, source_url: str, fields: dict[str, str]) -> None:
        client = self._require_client()
        key = self._key(source_url)

        async with self._semaphore:
            try:
                await client.hset(key, mapping=fields)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                raise CacheWriteError(f"Failed to write record: {e}") from e

        log.debug("store_hset", key=key, fields=sorted(fields))
