"""Download-link endpoints: cached lookup, forced refresh, record inspection."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from cipherbox.domain.entities.links import CacheRecord, LinkResult
from cipherbox.domain.exceptions import (
    CacheWriteError,
    InvalidSourceUrlError,
    NoDownloadLinkError,
)
from cipherbox.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["download"])


class RefreshRequest(BaseModel):
    url: str


def _error_to_http(exc: Exception, source_url: str) -> HTTPException:
    """Map service errors onto HTTP statuses."""
    if isinstance(exc, InvalidSourceUrlError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, NoDownloadLinkError):
        return HTTPException(status_code=404, detail=str(exc))
    log.error("download_link_store_failed", source_url=source_url, error=str(exc))
    return HTTPException(status_code=500, detail="Failed to access link store")


def _record_to_dict(record: CacheRecord, *, fresh: bool) -> dict[str, Any]:
    def _iso(value: Any) -> str | None:
        return value.isoformat() if value is not None else None

    return {
        "sourceUrl": record.source_url,
        "downloadUrl": record.download_url,
        "expiresAt": _iso(record.expires_at),
        "fetchedAt": _iso(record.fetched_at),
        "sizeBytes": record.size_bytes,
        "lastError": record.last_error,
        "isFresh": fresh,
    }


def _respond(result: LinkResult) -> JSONResponse:
    return JSONResponse(content=result.to_dict())


@router.get("/download")
async def get_download_link(
    request: Request,
    url: str = Query(..., description="Source URL of the shared file."),
) -> JSONResponse:
    """Return a direct download link, from cache while it is still valid.

    Raises:
        HTTPException(422): Missing or malformed URL.
        HTTPException(404): No proxy produced a usable link.
        HTTPException(500): Link store failure.
    """
    state = cast(AppState, request.app.state)
    log.info("download_link_request", source_url=url)

    try:
        result = await state.resolution_service.get_download_link(url)
    except (InvalidSourceUrlError, NoDownloadLinkError, CacheWriteError) as e:
        raise _error_to_http(e, url) from e
    return _respond(result)


@router.post("/download/refresh")
async def refresh_download_link(
    body: RefreshRequest,
    request: Request,
) -> JSONResponse:
    """Resolve again through the proxy chain, ignoring the cached link."""
    state = cast(AppState, request.app.state)
    log.info("download_link_refresh_request", source_url=body.url)

    try:
        result = await state.resolution_service.force_refresh(body.url)
    except (InvalidSourceUrlError, NoDownloadLinkError, CacheWriteError) as e:
        raise _error_to_http(e, body.url) from e
    return _respond(result)


@router.get("/download/record")
async def get_download_record(
    request: Request,
    url: str = Query(..., description="Source URL of the shared file."),
) -> dict[str, Any]:
    """Stored record for debugging; never triggers a resolution."""
    state = cast(AppState, request.app.state)

    try:
        record = await state.resolution_service.lookup_record(url)
    except (InvalidSourceUrlError, CacheWriteError) as e:
        raise _error_to_http(e, url) from e

    if record is None:
        raise HTTPException(status_code=404, detail="No record for this URL")
    return _record_to_dict(record, fresh=state.link_cache.is_fresh(record))
