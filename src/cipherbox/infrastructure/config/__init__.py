from __future__ import annotations

from .load import load_config
from .schema import AppConfig, CacheConfig, EnvOverrides, ProxyConfig

__all__ = ["AppConfig", "CacheConfig", "EnvOverrides", "ProxyConfig", "load_config"]
