"""Download-link extraction strategies for schema-less proxy payloads.

Each strategy takes a decoded payload and returns a candidate link or None.
``ResponseNormalizer`` composes them first-match-wins.
"""

from __future__ import annotations

import re
from typing import Any

from cipherbox.domain.entities.links import RAW_TEXT_KEY

# Field names probed in order on the top-level object
KNOWN_LINK_FIELDS: tuple[str, ...] = (
    "download_link",
    "downloadUrl",
    "download_url",
    "file",
    "file_url",
    "link",
    "url",
)

# Hostname fragments of the storage provider's download hosts
PROVIDER_HOST_FRAGMENTS: tuple[str, ...] = ("terabox", "dm-d.terabox")

# Video file extension right before an optional query string
_VIDEO_EXT_RE = re.compile(r"\.(?:mp4|mkv|webm|mov|m3u8)(?:\?|$)", re.IGNORECASE)

# First embedded absolute URL of 30-200 chars in free text
_EMBEDDED_URL_RE = re.compile(r"(https?://[^\s'\"]{30,200})")


def is_absolute_url(value: str) -> bool:
    """True for ``http://`` / ``https://`` URLs."""
    lowered = value.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def _looks_like_provider_link(value: str) -> bool:
    return any(fragment in value for fragment in PROVIDER_HOST_FRAGMENTS)


def _looks_like_download_link(value: str) -> bool:
    return _looks_like_provider_link(value) or bool(_VIDEO_EXT_RE.search(value))


def extract_known_field(payload: dict[str, Any]) -> str | None:
    """Return the first non-empty URL among the well-known link fields."""
    for key in KNOWN_LINK_FIELDS:
        value = payload.get(key)
        if isinstance(value, str):
            value = value.strip()
            if value and is_absolute_url(value):
                return value
    return None


def extract_heuristic_field(payload: dict[str, Any]) -> str | None:
    """Scan every top-level string (then one nested level) for a link.

    Top-level values match on provider hostname or video extension; nested
    values only on provider hostname.
    """
    for key, value in payload.items():
        if key == RAW_TEXT_KEY:
            continue
        if isinstance(value, str):
            value = value.strip()
            if is_absolute_url(value) and _looks_like_download_link(value):
                return value
        elif isinstance(value, dict):
            for nested in value.values():
                if not isinstance(nested, str):
                    continue
                nested = nested.strip()
                if is_absolute_url(nested) and _looks_like_provider_link(nested):
                    return nested
    return None


def extract_raw_text_url(payload: dict[str, Any]) -> str | None:
    """Pull the first long embedded URL out of a raw-text fallback payload."""
    raw_text = payload.get(RAW_TEXT_KEY)
    if not isinstance(raw_text, str):
        return None
    match = _EMBEDDED_URL_RE.search(raw_text)
    return match.group(1) if match else None
