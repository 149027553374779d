"""Toolbridge: Republish an MCP server's tools through a forwarding bridge.

This package connects to an upstream MCP server, reads its tool catalog and
publishes every tool again on its own stdio MCP server. Calls to the
republished tools are validated against models translated from the upstream
schemas and then forwarded, either directly over the upstream session or to
the main server's HTTP API.

Key Components:
    - Schema Translator: JSON schema -> pydantic validation models
    - ToolCatalogBridge: Mirrors the upstream catalog onto the outward server
    - Forwarders: Direct, HTTP (arguments as body) and JSON-RPC re-dispatch
    - Envelope helpers: Build the CallToolResult every call returns

Example:
    ```python
    from toolbridge import ToolCatalogBridge, ToolServer, UpstreamConnection, UpstreamConfig
    from toolbridge import create_forwarder

    connection = UpstreamConnection(UpstreamConfig(url="http://localhost:3001/sse"))
    forwarder = create_forwarder("http", origin_url="http://localhost:3001")
    bridge = ToolCatalogBridge(connection, ToolServer(), forwarder)

    await bridge.start()
    try:
        await bridge.server.serve_stdio()
    finally:
        await bridge.close()
    ```
"""

from toolbridge.core import (
    ArgumentValidationError,
    BridgeError,
    BridgeStateError,
    ConfigError,
    RegistrationError,
    ShutdownError,
    UpstreamConnectionError,
)
from toolbridge.forwarding import Forwarder, create_forwarder
from toolbridge.mcp import BridgeState, ToolCatalogBridge, ToolServer, UpstreamConfig, UpstreamConnection
from toolbridge.schema import ValidationModel, translate, translate_schema
from toolbridge.types import (
    create_error_response,
    create_image_response,
    create_json_response,
    create_success_response,
    is_envelope,
)

__version__ = "0.1.0"

__all__ = [
    "ArgumentValidationError",
    "BridgeError",
    "BridgeStateError",
    "ConfigError",
    "RegistrationError",
    "ShutdownError",
    "UpstreamConnectionError",
    "Forwarder",
    "create_forwarder",
    "BridgeState",
    "ToolCatalogBridge",
    "ToolServer",
    "UpstreamConfig",
    "UpstreamConnection",
    "ValidationModel",
    "translate",
    "translate_schema",
    "create_error_response",
    "create_image_response",
    "create_json_response",
    "create_success_response",
    "is_envelope",
]
