"""Bridge settings.

Settings come from ``TOOLBRIDGE_*`` environment variables and an optional
``.env`` file; command-line flags override them.
"""

import tempfile
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolbridge.core.errors import ConfigError
from toolbridge.logging_config import LoggingConfig, LogLevel
from toolbridge.mcp.schemas import UpstreamConfig

ForwardMode = Literal["http", "jsonrpc", "direct"]

DEFAULT_PORT = 3001
PID_FILE_NAME = "toolbridge.pid"
CONTROL_FILE_NAME = ".toolbridge-logging.json"


class BridgeSettings(BaseSettings):
    """Settings for one bridge process."""

    # Main server
    host: str = Field("localhost", description="Host of the main MCP server")
    port: int = Field(DEFAULT_PORT, description="Port of the main MCP server")

    # Upstream MCP connection
    upstream_transport: Literal["sse", "stdio"] = Field("sse", description="Upstream transport")
    upstream_url: Optional[str] = Field(None, description="Upstream SSE URL, defaults to http://host:port/sse")
    upstream_command: Optional[str] = Field(None, description="Command for a stdio upstream")
    upstream_args: List[str] = Field(default_factory=list, description="Arguments for a stdio upstream")
    upstream_env: Optional[Dict[str, str]] = Field(None, description="Environment for a stdio upstream")

    # Forwarding
    forward_mode: ForwardMode = Field("http", description="How tool calls are forwarded")
    origin_url: Optional[str] = Field(None, description="HTTP origin, defaults to http://host:port")
    http_timeout: Optional[float] = Field(None, gt=0, description="Total HTTP timeout in seconds")

    # Logging
    log_enabled: bool = Field(False, description="Enable logging")
    log_level: LogLevel = Field(LogLevel.INFO, description="Log level")
    log_file: Optional[str] = Field(None, description="Path to log file")

    # Process control
    pid_file: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / PID_FILE_NAME,
        description="Where the PID file is written"
    )
    control_file: Path = Field(
        default_factory=lambda: Path.cwd() / CONTROL_FILE_NAME,
        description="Logging control file read on reload"
    )
    server_name: str = Field("toolbridge", description="Name advertised to outward clients")
    drain_timeout: Optional[float] = Field(None, ge=0, description="Max seconds to wait for in-flight calls on shutdown")

    model_config = SettingsConfigDict(
        env_prefix="TOOLBRIDGE_",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, v):
        return LogLevel.parse(v)

    def __init__(self, env_file: Optional[str] = ".env", **kwargs):
        super().__init__(_env_file=env_file, **kwargs)

    @property
    def resolved_upstream_url(self) -> str:
        return self.upstream_url or f"http://{self.host}:{self.port}/sse"

    @property
    def resolved_origin_url(self) -> str:
        return (self.origin_url or f"http://{self.host}:{self.port}").rstrip("/")

    def upstream_config(self) -> UpstreamConfig:
        """Build the upstream connection config.

        Raises:
            ConfigError: If the upstream settings are inconsistent
        """
        try:
            if self.upstream_transport == "stdio":
                return UpstreamConfig(
                    transport="stdio",
                    command=self.upstream_command,
                    args=self.upstream_args,
                    env=self.upstream_env
                )
            return UpstreamConfig(transport="sse", url=self.resolved_upstream_url)
        except ValidationError as e:
            raise ConfigError(f"Invalid upstream configuration: {e}") from e

    def logging_config(self) -> LoggingConfig:
        return LoggingConfig(
            enabled=self.log_enabled,
            level=self.log_level,
            file_path=self.log_file
        )
