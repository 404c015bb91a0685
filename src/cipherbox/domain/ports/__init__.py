from .link_store import LinkStorePort
from .proxy_adapter import ProxyAdapterPort

__all__ = [
    "LinkStorePort",
    "ProxyAdapterPort",
]
