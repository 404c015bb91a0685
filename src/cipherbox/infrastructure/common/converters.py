"""Type conversion utilities."""

from __future__ import annotations

from cipherbox.infrastructure.common.parsers import parse_size_to_bytes


def to_int(raw: object) -> int | None:
    """Convert a loosely typed payload value to int, return None if invalid.

    Handles various formats:
        - None → None
        - int → int (passthrough)
        - float → int (truncated)
        - "123" → 123
        - "1,234" → 1234
        - "" → None
        - bool / other → None
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        return int(raw)

    if isinstance(raw, str):
        txt = raw.replace(",", "").replace(" ", "").strip()
        if not txt.isdigit():
            return None
        return int(txt)

    return None


def to_size_bytes(raw: object) -> int | None:
    """Convert a reported file size to bytes.

    Numbers and digit strings pass through ``to_int``; human-readable strings
    such as ``"1.5 GB"`` are parsed. Unknown shapes yield None, never an error.
    """
    value = to_int(raw)
    if value is not None:
        return value if value >= 0 else None
    if isinstance(raw, str):
        return parse_size_to_bytes(raw)
    return None


def to_text(raw: object) -> str | None:
    """Return a stripped non-empty string or None."""
    if not isinstance(raw, str):
        return None
    txt = raw.strip()
    return txt or None
