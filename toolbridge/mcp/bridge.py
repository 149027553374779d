"""Tool catalog bridge.

Reads the catalog of the upstream MCP server and re-publishes every tool on
the outward server as a proxy tool whose handler forwards the call.

Example:
    ```python
    bridge = ToolCatalogBridge(connection, ToolServer(), forwarder)
    await bridge.start()
    try:
        await bridge.server.serve_stdio()
    finally:
        await bridge.close()
    ```
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from mcp.types import CallToolResult

from toolbridge.core.errors import (
    BridgeStateError,
    RegistrationError,
    ShutdownError,
    UpstreamConnectionError,
)
from toolbridge.forwarding.base import Forwarder
from toolbridge.mcp.connection import UpstreamConnection
from toolbridge.mcp.server import ToolServer
from toolbridge.schema.translator import translate_schema
from toolbridge.types.models import ToolDescriptor, ToolHandler

logger = logging.getLogger(__name__)


class BridgeState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SERVING = "serving"
    CLOSING = "closing"
    CLOSED = "closed"


class ToolCatalogBridge:
    """Mirrors the upstream catalog onto the outward server.

    Attributes:
        connection: Upstream MCP connection, source of the catalog
        server: Outward server the proxy tools are published on
        forwarder: Where proxy tool calls are sent
    """

    def __init__(self, connection: UpstreamConnection, server: ToolServer, forwarder: Forwarder):
        self.connection = connection
        self.server = server
        self.forwarder = forwarder
        self._state = BridgeState.IDLE
        self._tools: List[ToolDescriptor] = []

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def tools(self) -> List[ToolDescriptor]:
        """The catalog fetched from upstream."""
        return list(self._tools)

    async def start(self) -> None:
        """Connect upstream, fetch the catalog and publish the proxy tools.

        Raises:
            BridgeStateError: If the bridge was already started or closed
            UpstreamConnectionError: If the upstream cannot be reached or listed
            RegistrationError: If a proxy tool cannot be registered
        """
        if self._state is not BridgeState.IDLE:
            raise BridgeStateError(f"Cannot start bridge in state {self._state.value}")

        self._state = BridgeState.CONNECTING
        try:
            await self.connection.connect()
        except UpstreamConnectionError:
            self._state = BridgeState.IDLE
            raise

        try:
            try:
                self._tools = await self.connection.list_tools()
            except Exception as e:
                raise UpstreamConnectionError(f"Failed to list tools: {e}") from e
            self._state = BridgeState.CONNECTED

            await self.forwarder.open()

            if not self._tools:
                logger.warning("Upstream server advertises no tools")
            for tool in self._tools:
                self._register(tool)
        except Exception:
            await self._abort_start()
            raise

        self._state = BridgeState.SERVING
        logger.info("Registered %d proxy tools", len(self._tools), extra={
            "forward_mode": self.forwarder.mode
        })

    async def _abort_start(self) -> None:
        # Leaves the bridge startable again
        self.server.registry.clear()
        self._tools = []
        for resource, closer in (
            ("upstream connection", self.connection.close),
            ("forwarder", self.forwarder.close),
        ):
            await self._close_one(resource, closer)
        self._state = BridgeState.IDLE

    def _register(self, tool: ToolDescriptor) -> None:
        model = translate_schema(tool.parameter_schema, model_name=tool.name)
        try:
            self.server.register_tool(tool.name, tool.description, model, self._make_handler(tool.name))
        except RegistrationError:
            logger.error("Failed to register tool %s", tool.name)
            raise
        except Exception as e:
            logger.error("Failed to register tool %s: %s", tool.name, e)
            raise RegistrationError(str(e), tool_name=tool.name) from e

    def _make_handler(self, tool_name: str) -> ToolHandler:
        async def handler(arguments: Dict[str, Any]) -> CallToolResult:
            return await self.forwarder.forward(tool_name, arguments)
        return handler

    async def close(self) -> List[ShutdownError]:
        """Close the outward server, the upstream connection and the forwarder.

        Each resource is closed even if an earlier one fails. Failures are
        logged and returned, never raised. Safe to call more than once.

        Returns:
            The resources that failed to close
        """
        if self._state in (BridgeState.CLOSING, BridgeState.CLOSED):
            return []
        self._state = BridgeState.CLOSING
        logger.info("Shutting down bridge")

        errors: List[ShutdownError] = []
        for resource, closer in (
            ("outward server", self.server.close),
            ("upstream connection", self.connection.close),
            ("forwarder", self.forwarder.close),
        ):
            error = await self._close_one(resource, closer)
            if error is not None:
                errors.append(error)

        self._state = BridgeState.CLOSED
        logger.info("Bridge closed", extra={"failures": len(errors)})
        return errors

    @staticmethod
    async def _close_one(resource: str, closer) -> Optional[ShutdownError]:
        try:
            await closer()
        except Exception as e:
            error = ShutdownError(resource, e)
            logger.error(str(error))
            return error
        return None
