"""Outward MCP server publishing the bridge's proxy tools.

Wraps the low-level ``mcp`` server: tools are registered one at a time with
a validation model and a handler, and the ``tools/list`` and ``tools/call``
requests are answered from the registry. Arguments are validated by the
bridge's own models (not by the SDK), so every rejection comes back as an
error envelope rather than a protocol error.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from toolbridge.core.errors import BridgeStateError, RegistrationError
from toolbridge.core.executor import ToolExecutor
from toolbridge.core.registry import RegisteredTool, ToolRegistry
from toolbridge.schema.translator import ValidationModel
from toolbridge.types.envelope import create_error_response
from toolbridge.types.models import ToolHandler

logger = logging.getLogger(__name__)


class ToolServer:
    """The outward-facing side of the bridge.

    Attributes:
        name: Server name advertised during initialization
        registry: Published tools
        drain_timeout: Max seconds ``close`` waits for in-flight calls (None waits indefinitely)
    """

    CANCEL_TIMEOUT = 5.0

    def __init__(self, name: str = "toolbridge", drain_timeout: Optional[float] = None):
        self.name = name
        self.drain_timeout = drain_timeout
        self.registry = ToolRegistry()
        self.executor = ToolExecutor(self.registry)
        self._server = Server(name)
        self._server.request_handlers[types.ListToolsRequest] = self._handle_list_tools
        self._server.request_handlers[types.CallToolRequest] = self._handle_call_tool
        self._closed = False
        self._connections: Set[asyncio.Task] = set()
        self._active_calls = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def closed(self) -> bool:
        return self._closed

    def register_tool(
        self,
        name: str,
        description: str,
        model: ValidationModel,
        handler: ToolHandler
    ) -> None:
        """Publish a tool.

        Raises:
            RegistrationError: If the server is closed, the name is empty or already taken
        """
        if self._closed:
            raise RegistrationError("Cannot register tools on a closed server", tool_name=name)
        if not name:
            raise RegistrationError("Tool name cannot be empty")
        if not description:
            logger.warning("Tool %s is missing a description", name)
            description = f"Tool: {name}"
        try:
            self.registry.register_tool(RegisteredTool(name, description, model, handler))
        except ValueError as e:
            raise RegistrationError(str(e), tool_name=name) from e
        logger.debug("Registered tool: %s", name)

    def list_tools(self) -> List[types.Tool]:
        """The published catalog as MCP tools."""
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.model.json_schema()
            )
            for tool in self.registry.list_tools()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        """Run one published tool and return its envelope."""
        if self._closed:
            return create_error_response("Server is shutting down")
        self._active_calls += 1
        self._idle.clear()
        try:
            return await self.executor.execute_tool(name, arguments)
        finally:
            self._active_calls -= 1
            if self._active_calls == 0:
                self._idle.set()

    async def _handle_list_tools(self, request: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=self.list_tools()))

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self.call_tool(request.params.name, request.params.arguments or {})
        return types.ServerResult(result)

    async def accept(self, read_stream, write_stream) -> None:
        """Serve one client connection until it ends or the server is closed."""
        if self._closed:
            raise BridgeStateError("Server is closed")
        task = asyncio.current_task()
        self._connections.add(task)
        logger.info("MCP server accepted a connection", extra={"server": self.name})
        try:
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options()
            )
        finally:
            self._connections.discard(task)
            logger.info("MCP server connection ended", extra={"server": self.name})

    async def serve_stdio(self) -> None:
        """Serve the client attached to this process's stdin/stdout."""
        async with stdio_server() as (read_stream, write_stream):
            await self.accept(read_stream, write_stream)

    async def close(self) -> None:
        """Stop accepting calls, let in-flight calls finish, then drop connections."""
        if self._closed and not self._connections:
            return
        self._closed = True

        if self._active_calls:
            logger.info("Waiting for %d in-flight tool calls", self._active_calls)
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=self.drain_timeout)
            except asyncio.TimeoutError:
                logger.error("Timed out waiting for in-flight calls, %d still running", self._active_calls)

        current = asyncio.current_task()
        connections = [task for task in self._connections if task is not current]
        for task in connections:
            task.cancel()
        if connections:
            _, pending = await asyncio.wait(connections, timeout=self.CANCEL_TIMEOUT)
            if pending:
                logger.error("%d connections did not stop within %.1fs", len(pending), self.CANCEL_TIMEOUT)

        self.registry.clear()
        logger.info("MCP server closed")
