"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "cipherbox",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": "cipherbox/0.1.0",
    },
    "resolution": {
        "proxy_timeout_seconds": 5.0,
        "default_expiry_hours": 8.0,
        "proxy_base_url": "http://localhost:5000",
    },
    "proxies": [],
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/cipherbox",
        "backend": "diskcache",
    },
}
