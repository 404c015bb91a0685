"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from cipherbox.domain.entities.links import ProxyDescriptor

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

# Upper bound for one proxy call; a single stuck proxy must not stall the chain
MAX_PROXY_TIMEOUT_SECONDS = 30.0


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Link store configuration (backend-agnostic)."""

    backend: Literal["diskcache", "redis"] = Field(
        default="diskcache",
        description="Store backend: 'diskcache' (SQLite) or 'redis'",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./.cache/cipherbox"),
        alias="dir",
        description="Diskcache SQLite DB path",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )

    # Shared settings
    key_prefix: str = Field(
        default="link:",
        description="Namespace prefix for record keys",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel store ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",  # Env vars: CACHE_BACKEND, CACHE_REDIS_URL, ...
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)


class ProxyConfig(BaseModel):
    """One entry of the ordered proxy list (YAML section: proxies[])."""

    name: str = Field(min_length=1, description="Unique proxy identifier.")
    url: str = Field(
        min_length=1,
        description="Absolute URL or path on the local proxy layer.",
    )
    method: Literal["GET", "POST"] = Field(default="POST")
    type: Literal["json", "query", "form"] = Field(
        default="json",
        description="Body/query encoding of the source URL.",
    )
    field: str = Field(
        default="url",
        min_length=1,
        description="Parameter name the proxy expects the source URL under.",
    )
    headers: dict[str, str] = Field(default_factory=dict)
    enabled: bool = Field(default=True)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def to_descriptor(self) -> ProxyDescriptor:
        return ProxyDescriptor(
            name=self.name,
            endpoint=self.url,
            method=self.method,
            encoding=self.type,
            field_name=self.field,
            headers=dict(self.headers),
            enabled=self.enabled,
        )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/resolution/logging/cache) with a
      top-level ``proxies`` list.
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="cipherbox", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP client timeout in seconds.",
    )
    http_user_agent: str = Field(
        default="cipherbox/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Resolution (YAML section: resolution.*)
    proxy_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "proxy_timeout_seconds",
            AliasPath("resolution", "proxy_timeout_seconds"),
        ),
        description="Per-proxy request timeout in seconds.",
    )
    default_expiry_hours: float = Field(
        default=8.0,
        validation_alias=AliasChoices(
            "default_expiry_hours",
            AliasPath("resolution", "default_expiry_hours"),
        ),
        description="Validity window assumed when a link carries no expiry.",
    )
    proxy_base_url: str = Field(
        default="http://localhost:5000",
        validation_alias=AliasChoices(
            "proxy_base_url",
            AliasPath("resolution", "proxy_base_url"),
        ),
        description="Base URL for proxy endpoints given as relative paths.",
    )

    # Ordered proxy list (priority = list order)
    proxies: list[ProxyConfig] = Field(default_factory=list)

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Link store (YAML section: cache.*)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("proxy_timeout_seconds")
    @classmethod
    def _validate_proxy_timeout(cls, v: float) -> float:
        if v <= 0 or v > MAX_PROXY_TIMEOUT_SECONDS:
            raise ValueError(
                f"proxy_timeout_seconds must be in (0, {MAX_PROXY_TIMEOUT_SECONDS}]"
            )
        return v

    @field_validator("default_expiry_hours")
    @classmethod
    def _validate_default_expiry(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("default_expiry_hours must be > 0")
        return v

    @field_validator("proxies")
    @classmethod
    def _validate_unique_proxy_names(cls, v: list[ProxyConfig]) -> list[ProxyConfig]:
        seen: set[str] = set()
        for proxy in v:
            if proxy.name in seen:
                raise ValueError(f"duplicate proxy name: {proxy.name!r}")
            seen.add(proxy.name)
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def proxy_descriptors(self) -> tuple[ProxyDescriptor, ...]:
        """Configured proxies as domain descriptors, in priority order."""
        return tuple(proxy.to_descriptor() for proxy in self.proxies)

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "resolution": {
                "proxy_timeout_seconds": self.proxy_timeout_seconds,
                "default_expiry_hours": self.default_expiry_hours,
                "proxy_base_url": self.proxy_base_url,
            },
            "proxies": [proxy.model_dump() for proxy in self.proxies],
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "redis_url": self.cache.redis_url,
                "key_prefix": self.cache.key_prefix,
            },
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read CIPHERBOX_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - CIPHERBOX_ENVIRONMENT
    - CIPHERBOX_PROXY_TIMEOUT_SECONDS
    - CIPHERBOX_PROXY_BASE_URL
    - CIPHERBOX_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="CIPHERBOX_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    proxy_timeout_seconds: Optional[float] = None
    default_expiry_hours: Optional[float] = None
    proxy_base_url: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_dir: Optional[Path] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
