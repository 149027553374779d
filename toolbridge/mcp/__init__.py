"""MCP sides of the bridge: the upstream client and the outward server."""

from .bridge import BridgeState, ToolCatalogBridge
from .connection import UpstreamConnection
from .schemas import UpstreamConfig
from .server import ToolServer

__all__ = [
    "BridgeState",
    "ToolCatalogBridge",
    "UpstreamConnection",
    "UpstreamConfig",
    "ToolServer",
]
