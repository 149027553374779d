"""Type definitions for the bridge.

This module contains the data model shared by the catalog bridge and the
call forwarder: tool descriptors fetched from upstream, per-call forward
requests, and the success/failure result of a forwarding attempt.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Union

from mcp.types import CallToolResult
from mcp.types import Tool as MCPTool
from pydantic import BaseModel, ConfigDict, Field

from toolbridge.types.envelope import create_error_response


class ToolDescriptor(BaseModel):
    """A tool advertised by the upstream server.

    Attributes:
        name: The tool name, unique within a catalog
        description: Human-readable description of the tool
        parameter_schema: The tool's JSON input schema, as advertised
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    parameter_schema: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mcp(cls, tool: MCPTool) -> "ToolDescriptor":
        """Build a descriptor from an MCP ``Tool``."""
        return cls(
            name=tool.name,
            description=tool.description or "",
            parameter_schema=dict(tool.inputSchema or {})
        )

    @property
    def properties(self) -> Dict[str, Any]:
        properties = self.parameter_schema.get("properties")
        return properties if isinstance(properties, dict) else {}

    @property
    def required(self) -> list:
        required = self.parameter_schema.get("required")
        return list(required) if isinstance(required, list) else []


@dataclass(frozen=True)
class ForwardRequest:
    """A single invocation to forward."""

    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ForwardSuccess:
    """A forwarding attempt that produced a usable reply."""

    envelope: CallToolResult

    def to_envelope(self) -> CallToolResult:
        return self.envelope


@dataclass(frozen=True)
class ForwardFailure:
    """A forwarding attempt that failed; carries the message shown to the caller."""

    message: str

    def to_envelope(self) -> CallToolResult:
        return create_error_response(self.message)


ForwardResult = Union[ForwardSuccess, ForwardFailure]

# Outward proxy handlers receive validated arguments and answer with an envelope
ToolHandler = Callable[[Dict[str, Any]], Awaitable[CallToolResult]]
