"""Parsing utilities for proxy payload values."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

# "8h", "12 H", "expires in 6h" -> hours
_HOURS_RE = re.compile(r"(\d+)\s*h", re.IGNORECASE)

# Epoch values below this are seconds, at or above it milliseconds
_EPOCH_MS_THRESHOLD = 10**12

# Minimum digit count for a query parameter to count as a Unix epoch
_EPOCH_MIN_DIGITS = 9


def parse_size_to_bytes(size_str: str) -> int | None:
    """Parse size string to bytes.

    Supports formats:
        - "1234" (raw bytes)
        - "4.5 GB"
        - "500 MB"
        - "1.2 TB"

    Args:
        size_str: Size string.

    Returns:
        Size in bytes, or None when the string is not a recognisable size.
    """
    size_str = size_str.strip()
    if not size_str:
        return None

    if size_str.isdigit():
        return int(size_str)

    match = re.fullmatch(r"([\d.]+)\s*([KMGT]?I?B)", size_str.upper())
    if not match:
        return None

    try:
        value = float(match.group(1))
    except ValueError:
        return None
    unit = match.group(2).replace("I", "")

    multipliers = {
        "B": 1,
        "KB": 1024,
        "MB": 1024**2,
        "GB": 1024**3,
        "TB": 1024**4,
    }

    return int(value * multipliers.get(unit, 1))


def parse_hours(value: str, now: datetime) -> datetime | None:
    """Parse an ``"<N>h"`` duration into ``now + N hours``.

    Other unit suffixes are not supported and yield None, as do durations
    that land outside the datetime range.
    """
    match = _HOURS_RE.search(value)
    if not match:
        return None
    try:
        return now + timedelta(hours=int(match.group(1)))
    except OverflowError:
        return None


def parse_epoch(value: str) -> datetime | None:
    """Interpret a pure-digit string of at least 9 digits as a Unix epoch.

    Values below 10^12 are seconds, everything else milliseconds.
    """
    if not value.isdigit() or len(value) < _EPOCH_MIN_DIGITS:
        return None
    epoch = int(value)
    seconds = epoch if epoch < _EPOCH_MS_THRESHOLD else epoch / 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: object) -> datetime | None:
    """Parse an absolute timestamp (ISO-8601 string or numeric epoch).

    Naive ISO values are taken as UTC. Returns None when unparsable.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return parse_epoch(str(int(value)))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.isdigit():
        return parse_epoch(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
