"""Derive an absolute expiry for a resolved download link.

Proxies encode expiry inconsistently (JSON field, URL parameter, relative
duration, or not at all). Priority:

1. ``expires_at`` field (absolute timestamp)
2. ``expires_in`` field (relative seconds, positive only)
3. ``expires`` field matching ``<N>h``
4. URL query parameter (``expires``, ``expires_at``, ``dstime``, ``exp``)
   holding a Unix epoch (>= 9 digits; < 10^12 seconds, else milliseconds)
5. same parameter matching ``<N>h``
6. default window (8 hours)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import parse_qs, urlparse

import structlog

from cipherbox.infrastructure.common.parsers import (
    parse_epoch,
    parse_hours,
    parse_timestamp,
)

log = structlog.get_logger(__name__)

DEFAULT_EXPIRY_HOURS = 8

URL_EXPIRY_PARAMS: tuple[str, ...] = ("expires", "expires_at", "dstime", "exp")


class ExpiryResolver:
    """Never fails; always yields a timezone-aware UTC expiry."""

    def __init__(self, default_hours: float = DEFAULT_EXPIRY_HOURS) -> None:
        self._default = timedelta(hours=default_hours)

    def resolve_expiry(
        self,
        raw_fields: dict[str, Any],
        download_url: str | None,
        now: datetime | None = None,
    ) -> datetime:
        now = now or datetime.now(timezone.utc)

        expires_at = self._from_fields(raw_fields, now)
        if expires_at is not None:
            return expires_at

        if download_url:
            expires_at = self._from_url(download_url, now)
            if expires_at is not None:
                return expires_at

        log.debug("expiry_default_applied", hours=self._default.total_seconds() / 3600)
        return now + self._default

    @staticmethod
    def _from_fields(raw_fields: dict[str, Any], now: datetime) -> datetime | None:
        absolute = raw_fields.get("expires_at")
        if absolute not in (None, ""):
            parsed = parse_timestamp(absolute)
            if parsed is not None:
                return parsed

        relative = raw_fields.get("expires_in")
        if relative not in (None, "") and not isinstance(relative, bool):
            # zero or negative windows count as absent
            try:
                seconds = float(relative)
                if seconds > 0:
                    return now + timedelta(seconds=seconds)
            except (TypeError, ValueError, OverflowError):
                pass

        duration = raw_fields.get("expires")
        if duration not in (None, ""):
            return parse_hours(str(duration), now)

        return None

    @staticmethod
    def _from_url(download_url: str, now: datetime) -> datetime | None:
        try:
            query = parse_qs(urlparse(download_url).query)
        except ValueError:
            return None

        for key in URL_EXPIRY_PARAMS:
            values = query.get(key)
            if not values:
                continue
            value = values[0].strip()
            expires_at = parse_epoch(value) or parse_hours(value, now)
            if expires_at is not None:
                return expires_at
        return None
