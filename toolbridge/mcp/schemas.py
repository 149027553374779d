"""Configuration schemas for the upstream MCP connection."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

UpstreamTransport = Literal["sse", "stdio"]


class UpstreamConfig(BaseModel):
    """How to reach the upstream MCP server.

    ``sse`` connects to a running server's SSE endpoint; ``stdio`` spawns the
    server as a child process.
    """

    transport: UpstreamTransport = Field("sse", description="Upstream transport")
    url: Optional[str] = Field(None, description="SSE endpoint URL")
    command: Optional[str] = Field(None, description="Command to start a stdio server")
    args: List[str] = Field(default_factory=list, description="Arguments for the server command")
    env: Optional[Dict[str, str]] = Field(None, description="Environment variables for the server")

    @field_validator('args')
    @classmethod
    def validate_args(cls, v: List[str]) -> List[str]:
        """Validate args list contains non-empty strings."""
        if any(not arg.strip() for arg in v):
            raise ValueError("All args must be non-empty strings")
        return v

    @model_validator(mode='after')
    def validate_transport(self) -> 'UpstreamConfig':
        """Validate that the chosen transport has what it needs."""
        if self.transport == "sse" and not (self.url and self.url.strip()):
            raise ValueError("SSE transport requires a url")
        if self.transport == "stdio" and not (self.command and self.command.strip()):
            raise ValueError("Command cannot be empty for stdio transport")
        return self

    @property
    def target(self) -> str:
        """Human-readable upstream location for logs."""
        if self.transport == "sse":
            return self.url
        return " ".join([self.command, *self.args])
