"""Normalize heterogeneous proxy payloads into a canonical response.

Upstream proxies are uncontrolled third-party services whose response shapes
drift without notice, so extraction is a chain of lenient strategies rather
than a schema:

1. well-known link fields (``download_link``, ``downloadUrl``, ...)
2. any top-level string that looks like a provider/video link, then one
   nested level (provider hostname only)
3. for raw-text bodies, the first long embedded URL
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog

from cipherbox.domain.entities.links import (
    RAW_TEXT_KEY,
    MediaMetadata,
    NormalizedResponse,
)
from cipherbox.infrastructure.common.converters import to_int, to_size_bytes, to_text
from cipherbox.infrastructure.common.extractors import (
    extract_heuristic_field,
    extract_known_field,
    extract_raw_text_url,
)

log = structlog.get_logger(__name__)

LinkStrategy = Callable[[dict[str, Any]], str | None]

_SIZE_FIELDS = ("size", "filesize", "file_size")
_TITLE_FIELDS = ("title", "file_name", "filename", "name")
_THUMBNAIL_FIELDS = ("thumbnail", "thumb", "image")

_STRUCTURED_STRATEGIES: tuple[LinkStrategy, ...] = (
    extract_known_field,
    extract_heuristic_field,
)


def _first_present(payload: dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def extract_size(payload: dict[str, Any]) -> int | None:
    """Reported file size in bytes, or None when absent/unparsable."""
    for key in _SIZE_FIELDS:
        if payload.get(key) in (None, ""):
            continue
        size = to_size_bytes(payload[key])
        if size is not None:
            return size
    return None


def extract_metadata(payload: dict[str, Any]) -> MediaMetadata:
    """Title, description, thumbnail and duration, when the proxy sent them."""
    return MediaMetadata(
        title=to_text(_first_present(payload, _TITLE_FIELDS)),
        description=to_text(payload.get("description")),
        thumbnail=to_text(_first_present(payload, _THUMBNAIL_FIELDS)),
        duration=to_int(payload.get("duration")),
    )


class ResponseNormalizer:
    """Composes link strategies first-match-wins."""

    def __init__(
        self,
        strategies: Sequence[LinkStrategy] = _STRUCTURED_STRATEGIES,
    ) -> None:
        self._strategies = tuple(strategies)

    def find_link(self, payload: dict[str, Any]) -> str | None:
        for strategy in self._strategies:
            candidate = strategy(payload)
            if candidate:
                return candidate
        if RAW_TEXT_KEY in payload:
            return extract_raw_text_url(payload)
        return None

    def normalize(self, payload: dict[str, Any]) -> NormalizedResponse | None:
        """Extract link, size and metadata. None = no usable link."""
        download_url = self.find_link(payload)
        if download_url is None:
            log.debug("normalize_no_candidate", fields=sorted(payload)[:20])
            return None

        return NormalizedResponse(
            download_url=download_url,
            size_bytes=extract_size(payload),
            raw_fields=payload,
            metadata=extract_metadata(payload),
        )
