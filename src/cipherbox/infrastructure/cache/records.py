"""Flat string encoding of CacheRecord fields shared by the store backends."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from cipherbox.domain.entities.links import CacheRecord

RECORD_FIELDS: tuple[str, ...] = (
    "source_url",
    "download_url",
    "expires_at",
    "fetched_at",
    "size_bytes",
    "last_error",
)


def encode_datetime(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def encode_int(value: int | None) -> str:
    return str(value) if value is not None else ""


def _decode_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _decode_int(value: str | None) -> int | None:
    if not value:
        return None
    return int(value)


def decode_record(data: Mapping[str, str]) -> CacheRecord:
    """Build a CacheRecord from a flat mapping; empty strings mean unset.

    Raises:
        KeyError: ``source_url`` is missing.
        ValueError: a timestamp or integer field is corrupt.
    """
    return CacheRecord(
        source_url=data["source_url"],
        download_url=data.get("download_url") or None,
        expires_at=_decode_datetime(data.get("expires_at")),
        fetched_at=_decode_datetime(data.get("fetched_at")),
        size_bytes=_decode_int(data.get("size_bytes")),
        last_error=data.get("last_error") or None,
    )


def link_fields(
    source_url: str,
    *,
    download_url: str,
    expires_at: datetime | None,
    fetched_at: datetime,
    size_bytes: int | None,
) -> dict[str, str]:
    """Fields written on a successful resolution (clears ``last_error``)."""
    return {
        "source_url": source_url,
        "download_url": download_url,
        "expires_at": encode_datetime(expires_at),
        "fetched_at": encode_datetime(fetched_at),
        "size_bytes": encode_int(size_bytes),
        "last_error": "",
    }


def failure_fields(
    source_url: str, *, reason: str, fetched_at: datetime
) -> dict[str, str]:
    """Fields written on exhaustion (link fields untouched)."""
    return {
        "source_url": source_url,
        "last_error": reason,
        "fetched_at": encode_datetime(fetched_at),
    }
