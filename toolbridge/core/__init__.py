"""Core module for the toolbridge package."""

from .errors import (
    ArgumentValidationError,
    BridgeError,
    BridgeStateError,
    ConfigError,
    RegistrationError,
    SchemaTranslationError,
    ShutdownError,
    UpstreamConnectionError,
)
from .executor import ToolExecutor
from .registry import RegisteredTool, ToolRegistry

__all__ = [
    "BridgeError",
    "ConfigError",
    "UpstreamConnectionError",
    "RegistrationError",
    "BridgeStateError",
    "SchemaTranslationError",
    "ShutdownError",
    "ArgumentValidationError",
    "RegisteredTool",
    "ToolRegistry",
    "ToolExecutor",
]
