"""Tool executor for the outward server.

Runs a registered tool's handler after validating the call arguments
against the tool's model. Every outcome, including unknown tools, invalid
arguments and handler crashes, is returned as an envelope; nothing is raised
to the transport.
"""

import logging
import time
from typing import Any, Dict, Optional

from mcp.types import CallToolResult

from toolbridge.core.errors import ArgumentValidationError
from toolbridge.core.registry import ToolRegistry
from toolbridge.types.envelope import create_error_response
from toolbridge.utils.log_utils import redact_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Executes registered tools with parameter validation."""

    def __init__(self, registry: ToolRegistry) -> None:
        """Initialize a tool executor.

        Args:
            registry: The registry holding the published tools
        """
        self._registry = registry

    async def execute_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]]
    ) -> CallToolResult:
        """Validate arguments and run the tool's handler.

        Args:
            name: The name of the tool to execute
            arguments: Raw arguments received from the outward client

        Returns:
            The handler's envelope, or an error envelope
        """
        start_time = time.time()
        try:
            tool = self._registry.get_tool(name)
        except KeyError:
            logger.error("Unknown tool requested: %s", name)
            return create_error_response(f"Unknown tool: {name}")

        logger.debug("Tool %s called with params", name, extra=redact_sensitive_data({
            "arguments": arguments
        }))

        try:
            validated = tool.model.validate(arguments, tool_name=name)
        except ArgumentValidationError as e:
            logger.error("Rejected arguments for tool %s: %s", name, e)
            return create_error_response(str(e))

        try:
            result = await tool.handler(validated)
        except Exception as e:
            logger.error("Error calling tool %s: %s", name, sanitize_log_message(str(e)), extra={
                "duration_ms": int((time.time() - start_time) * 1000)
            })
            return create_error_response(f"Error: {e}")

        logger.debug("Tool %s completed", name, extra={
            "is_error": result.isError,
            "duration_ms": int((time.time() - start_time) * 1000)
        })
        return result
