"""Tests for ResolutionService (cached lookup + forced refresh)."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from cipherbox.application.use_cases import ResolutionService, validate_source_url
from cipherbox.domain.entities import (
    CacheRecord,
    ExhaustedResolution,
    ResolvedLink,
)
from cipherbox.domain.exceptions import (
    CacheWriteError,
    InvalidSourceUrlError,
    NoDownloadLinkError,
)
from cipherbox.infrastructure.metrics import MetricsCollector
from cipherbox.infrastructure.persistence.link_cache import LinkCache


@pytest.fixture()
def orchestrator(resolved_link: ResolvedLink) -> AsyncMock:
    o = AsyncMock()
    o.resolve = AsyncMock(return_value=resolved_link)
    return o


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture()
def service(
    orchestrator: AsyncMock,
    mock_link_store: AsyncMock,
    metrics: MetricsCollector,
    now: datetime,
) -> ResolutionService:
    return ResolutionService(
        orchestrator=orchestrator,
        link_cache=LinkCache(mock_link_store, clock=lambda: now),
        metrics=metrics,
    )


class TestValidateSourceUrl:
    def test_strips(self) -> None:
        assert validate_source_url("  https://example.com/s/a ") == "https://example.com/s/a"

    @pytest.mark.parametrize(
        "raw",
        [None, "", "   ", "example.com/s/a", "ftp://example.com/a", "https://", "/s/a"],
    )
    def test_rejects(self, raw: str | None) -> None:
        with pytest.raises(InvalidSourceUrlError):
            validate_source_url(raw)


class TestGetDownloadLink:
    async def test_fresh_cache_short_circuits(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        fresh_record: CacheRecord,
        metrics: MetricsCollector,
    ) -> None:
        mock_link_store.get_record.return_value = fresh_record

        result = await service.get_download_link(fresh_record.source_url)

        assert result.source == "cache"
        assert result.download_url == fresh_record.download_url
        assert result.expires_at == fresh_record.expires_at
        assert result.size_bytes == 2048
        assert result.proxy is None
        orchestrator.resolve.assert_not_awaited()
        mock_link_store.upsert_link.assert_not_awaited()
        assert metrics.snapshot()["cache"]["hits"] == 1

    async def test_miss_resolves_and_stores(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
        resolved_link: ResolvedLink,
        now: datetime,
    ) -> None:
        result = await service.get_download_link(source_url)

        assert result.source == "fresh"
        assert result.download_url == resolved_link.download_url
        assert result.proxy == "alpha"
        assert result.metadata.title == "abc.mp4"
        orchestrator.resolve.assert_awaited_once_with(source_url)
        mock_link_store.upsert_link.assert_awaited_once_with(
            source_url,
            download_url=resolved_link.download_url,
            expires_at=resolved_link.expires_at,
            fetched_at=now,
            size_bytes=resolved_link.size_bytes,
        )

    async def test_expired_record_resolves_again(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
        now: datetime,
    ) -> None:
        mock_link_store.get_record.return_value = CacheRecord(
            source_url=source_url,
            download_url="https://d.terabox.com/old",
            expires_at=now,
        )

        result = await service.get_download_link(source_url)

        assert result.source == "fresh"
        orchestrator.resolve.assert_awaited_once()

    async def test_failed_record_without_link_resolves_again(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
    ) -> None:
        mock_link_store.get_record.return_value = CacheRecord(
            source_url=source_url, last_error="no-download-found"
        )

        await service.get_download_link(source_url)

        orchestrator.resolve.assert_awaited_once()

    async def test_exhaustion_records_failure_and_raises(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
        metrics: MetricsCollector,
        now: datetime,
    ) -> None:
        orchestrator.resolve.return_value = ExhaustedResolution(
            source_url=source_url, attempted=("alpha", "beta")
        )

        with pytest.raises(NoDownloadLinkError) as exc_info:
            await service.get_download_link(source_url)

        assert str(exc_info.value) == "No download link found"
        mock_link_store.record_failure.assert_awaited_once_with(
            source_url, reason="no-download-found", fetched_at=now
        )
        mock_link_store.upsert_link.assert_not_awaited()
        assert metrics.snapshot()["cache"]["exhaustions"] == 1

    async def test_invalid_url_never_touches_store(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
    ) -> None:
        with pytest.raises(InvalidSourceUrlError):
            await service.get_download_link("not a url")

        mock_link_store.get_record.assert_not_awaited()
        orchestrator.resolve.assert_not_awaited()

    async def test_store_error_propagates(
        self,
        service: ResolutionService,
        mock_link_store: AsyncMock,
        source_url: str,
    ) -> None:
        mock_link_store.upsert_link.side_effect = CacheWriteError("disk full")

        with pytest.raises(CacheWriteError):
            await service.get_download_link(source_url)


class TestForceRefresh:
    async def test_bypasses_fresh_cache(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        fresh_record: CacheRecord,
        metrics: MetricsCollector,
    ) -> None:
        mock_link_store.get_record.return_value = fresh_record

        result = await service.force_refresh(fresh_record.source_url)

        assert result.source == "fresh"
        orchestrator.resolve.assert_awaited_once_with(fresh_record.source_url)
        mock_link_store.get_record.assert_not_awaited()
        assert metrics.snapshot()["cache"]["forced_refreshes"] == 1

    async def test_exhaustion_keeps_previous_link(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
    ) -> None:
        orchestrator.resolve.return_value = ExhaustedResolution(source_url=source_url)

        with pytest.raises(NoDownloadLinkError):
            await service.force_refresh(source_url)

        mock_link_store.upsert_link.assert_not_awaited()
        mock_link_store.record_failure.assert_awaited_once()


class TestLookupRecord:
    async def test_returns_record_without_resolving(
        self,
        service: ResolutionService,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        fresh_record: CacheRecord,
        metrics: MetricsCollector,
    ) -> None:
        mock_link_store.get_record.return_value = fresh_record

        assert await service.lookup_record(fresh_record.source_url) is fresh_record
        orchestrator.resolve.assert_not_awaited()
        assert metrics.snapshot()["cache"]["hits"] == 0


class TestWithoutMetrics:
    async def test_metrics_optional(
        self,
        orchestrator: AsyncMock,
        mock_link_store: AsyncMock,
        source_url: str,
        now: datetime,
    ) -> None:
        service = ResolutionService(
            orchestrator=orchestrator,
            link_cache=LinkCache(mock_link_store, clock=lambda: now + timedelta(0)),
        )
        result = await service.force_refresh(source_url)
        assert result.source == "fresh"
