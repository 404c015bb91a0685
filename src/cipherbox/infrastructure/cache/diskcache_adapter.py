"""Diskcache link store - SQLite-based record store without daemon process."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime
from pathlib import Path

import structlog
from diskcache import Cache as DiskCache
from diskcache import Timeout as DiskcacheTimeout

from cipherbox.domain.entities.links import CacheRecord
from cipherbox.domain.exceptions import CacheWriteError
from cipherbox.infrastructure.cache.records import (
    decode_record,
    failure_fields,
    link_fields,
)

log = structlog.get_logger(__name__)

_STORE_ERRORS = (DiskcacheTimeout, sqlite3.Error, OSError)


class DiskcacheLinkStore:
    """Async wrapper around diskcache.Cache (sync-only library).

    - Uses `asyncio.to_thread` for I/O (no blocking of the event loop).
    - Every write runs inside `Cache.transact()`, so the read-merge-write of
      one record is a single SQLite transaction, also across processes.
    - Semaphore prevents too many parallel disk writes (SQLite lock contention).
    - Records never expire on their own; freshness is decided by the caller.

    Args:
        directory: SQLite DB path (default: `./cache`).
        key_prefix: Namespace for record keys.
        max_concurrent: Max parallel disk ops (default: 10, tunable).
    """

    def __init__(
        self,
        directory: str | Path = "./cache",
        key_prefix: str = "link:",
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.key_prefix = key_prefix
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_store_init",
            directory=str(self.directory),
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheLinkStore:
        """Open SQLite cache (lazy, on first access)."""
        if self._cache is None:
            self._cache = await asyncio.to_thread(
                DiskCache,
                str(self.directory),
            )
            log.info("diskcache_opened", path=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup: close cache, release locks."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    def _key(self, source_url: str) -> str:
        return f"{self.key_prefix}{source_url}"

    def _require_cache(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError(
                "Store not initialized. Use 'async with store:' or await store.__aenter__()"
            )
        return self._cache

    # --- LinkStorePort implementation ---
    async def get_record(self, source_url: str) -> CacheRecord | None:
        """Point lookup (sync disk I/O -> to_thread)."""
        cache = self._require_cache()
        key = self._key(source_url)

        async with self._semaphore:
            try:
                raw = await asyncio.to_thread(cache.get, key, default=None)
            except _STORE_ERRORS as e:
                log.error("diskcache_get_error", key=key, error=str(e))
                raise CacheWriteError(f"Failed to read record: {e}") from e

        log.debug("store_get", key=key, hit=raw is not None)
        if raw is None:
            return None
        try:
            return decode_record(json.loads(raw))
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            log.error("store_record_corrupt", key=key, error=str(e))
            return None

    async def upsert_link(
        self,
        source_url: str,
        *,
        download_url: str,
        expires_at: datetime | None,
        fetched_at: datetime,
        size_bytes: int | None,
    ) -> None:
        """Insert or overwrite the link fields of one record."""
        fields = link_fields(
            source_url,
            download_url=download_url,
            expires_at=expires_at,
            fetched_at=fetched_at,
            size_bytes=size_bytes,
        )
        await self._merge(source_url, fields)

    async def record_failure(
        self, source_url: str, *, reason: str, fetched_at: datetime
    ) -> None:
        """Insert or update ``last_error``/``fetched_at`` of one record."""
        await self._merge(
            source_url,
            failure_fields(source_url, reason=reason, fetched_at=fetched_at),
        )

    async def _merge(self, source_url: str, fields: dict[str, str]) -> None:
        cache = self._require_cache()
        key = self._key(source_url)

        def _write() -> None:
            with cache.transact():
                current: dict[str, str] = {}
                raw = cache.get(key, default=None)
                if raw is not None:
                    try:
                        loaded = json.loads(raw)
                    except json.JSONDecodeError:
                        loaded = None
                    if isinstance(loaded, dict):
                        current = loaded
                current.update(fields)
                cache.set(key, json.dumps(current))

        async with self._semaphore:
            try:
                await asyncio.to_thread(_write)
            except _STORE_ERRORS as e:
                log.error("diskcache_write_error", key=key, error=str(e))
                raise CacheWriteError(f"Failed to write record: {e}") from e

        log.debug("store_merge", key=key, fields=sorted(fields))
