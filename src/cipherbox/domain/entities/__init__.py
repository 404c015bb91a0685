from .links import (
    RAW_TEXT_KEY,
    CacheRecord,
    ExhaustedResolution,
    LinkResult,
    LinkSource,
    MediaMetadata,
    NormalizedResponse,
    ProxyDescriptor,
    ProxyEncoding,
    ProxyFailure,
    ProxyMethod,
    ProxyResponse,
    ResolvedLink,
)

__all__ = [
    "RAW_TEXT_KEY",
    "CacheRecord",
    "ExhaustedResolution",
    "LinkResult",
    "LinkSource",
    "MediaMetadata",
    "NormalizedResponse",
    "ProxyDescriptor",
    "ProxyEncoding",
    "ProxyFailure",
    "ProxyMethod",
    "ProxyResponse",
    "ResolvedLink",
]
