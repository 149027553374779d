"""Connection to the upstream MCP server.

The upstream server is the source of the tool catalog and, in direct
forwarding mode, the target of every call. It is reached either over SSE
(the default, a server already listening on ``http://host:port/sse``) or by
spawning it as a stdio child process.

Example:
    ```python
    connection = UpstreamConnection(UpstreamConfig(url="http://localhost:3001/sse"))
    await connection.connect()
    try:
        tools = await connection.list_tools()
        result = await connection.invoke("exec_command", {"command": "ls"})
    finally:
        await connection.close()
    ```

Implementation Notes:
    - Uses AsyncExitStack so the transport and session unwind in order
    - A failed connect releases whatever it had opened and raises
      UpstreamConnectionError; there is no automatic retry
    - ``connect`` and ``close`` must run in the same task (anyio cancel scopes)
"""

import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncContextManager, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.types import CallToolResult

from toolbridge.core.errors import BridgeStateError, UpstreamConnectionError
from toolbridge.mcp.schemas import UpstreamConfig
from toolbridge.types.models import ToolDescriptor
from toolbridge.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)


def _root_cause(error: BaseException) -> BaseException:
    """Unwrap the exception groups anyio task groups raise."""
    while isinstance(error, BaseExceptionGroup) and error.exceptions:
        error = error.exceptions[0]
    return error


class UpstreamConnection:
    """Owns one MCP client session to the upstream server.

    Attributes:
        config: Where and how to connect
        session: The live ClientSession, or None when disconnected
    """

    def __init__(self, config: UpstreamConfig):
        self.config = config
        self.session: Optional[ClientSession] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    @property
    def connected(self) -> bool:
        return self.session is not None

    def _open_transport(self) -> AsyncContextManager:
        if self.config.transport == "stdio":
            params: Dict[str, Any] = {
                "command": self.config.command,
                "args": self.config.args
            }
            if self.config.env:
                params["env"] = self.config.env
            return stdio_client(StdioServerParameters(**params))
        return sse_client(self.config.url)

    async def connect(self) -> ClientSession:
        """Open the transport and initialize the MCP session.

        Returns:
            The initialized ClientSession

        Raises:
            BridgeStateError: If already connected
            UpstreamConnectionError: If the server cannot be reached or initialized
        """
        if self.session is not None:
            raise BridgeStateError("Upstream connection is already open")

        logger.info("Connecting to MCP server", extra={
            "transport": self.config.transport,
            "target": self.config.target
        })
        exit_stack = AsyncExitStack()
        try:
            read_stream, write_stream = await exit_stack.enter_async_context(self._open_transport())
            session = await exit_stack.enter_async_context(ClientSession(read_stream, write_stream))
            await session.initialize()
        except Exception as e:
            cause = _root_cause(e)
            logger.error("Failed to connect to MCP server %s: %s",
                         self.config.target, sanitize_log_message(str(cause)))
            try:
                await exit_stack.aclose()
            except Exception as close_error:
                logger.error("Error releasing partially opened connection: %s", _root_cause(close_error))
            raise UpstreamConnectionError(
                f"Failed to connect to MCP server at {self.config.target}: {cause}"
            ) from e

        self._exit_stack = exit_stack
        self.session = session
        logger.info("Connected to MCP server", extra={"target": self.config.target})
        return session

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise BridgeStateError("Upstream connection is not open")
        return self.session

    async def list_tools(self) -> List[ToolDescriptor]:
        """Fetch the upstream tool catalog."""
        result = await self._require_session().list_tools()
        tools = [ToolDescriptor.from_mcp(tool) for tool in result.tools]
        logger.info("Retrieved %d tools from server: %s",
                    len(tools), ", ".join(tool.name for tool in tools))
        return tools

    async def invoke(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        """Call a tool on the upstream server."""
        return await self._require_session().call_tool(name, arguments)

    async def close(self) -> None:
        """Close the session and transport. Safe to call more than once.

        Raises:
            Exception: Whatever the transport raised while closing
        """
        exit_stack, self._exit_stack = self._exit_stack, None
        self.session = None
        if exit_stack is None:
            return
        try:
            await exit_stack.aclose()
        except Exception as e:
            cause = _root_cause(e)
            if cause is e:
                raise
            raise cause from e
        logger.info("Disconnected from MCP server")
