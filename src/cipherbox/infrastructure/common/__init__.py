"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import to_int, to_size_bytes, to_text
from .extractors import (
    extract_heuristic_field,
    extract_known_field,
    extract_raw_text_url,
)
from .parsers import parse_epoch, parse_hours, parse_size_to_bytes, parse_timestamp

__all__ = [
    "to_int",
    "to_size_bytes",
    "to_text",
    "extract_heuristic_field",
    "extract_known_field",
    "extract_raw_text_url",
    "parse_epoch",
    "parse_hours",
    "parse_size_to_bytes",
    "parse_timestamp",
]
