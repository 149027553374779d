"""Error classes for the toolbridge package."""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from toolbridge.schema.translator import Violation


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(self, message: str, *, tool_name: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.tool_name:
            return f"[{self.tool_name}] {super().__str__()}"
        return super().__str__()


class ConfigError(BridgeError):
    """Raised when the bridge configuration is invalid."""
    pass


class UpstreamConnectionError(BridgeError):
    """Raised when the upstream MCP server cannot be reached or initialized."""
    pass


class RegistrationError(BridgeError):
    """Raised when a proxy tool cannot be registered on the outward server."""
    pass


class BridgeStateError(BridgeError):
    """Raised when an operation is not allowed in the bridge's current state."""
    pass


class SchemaTranslationError(BridgeError):
    """Raised inside the translator for a single malformed field.

    Never escapes ``translate``; the field degrades to ``Any`` instead.
    """
    pass


class ShutdownError(BridgeError):
    """Describes a resource that failed to close during shutdown."""

    def __init__(self, resource: str, cause: BaseException):
        self.resource = resource
        self.cause = cause
        super().__init__(f"Failed to close {resource}: {cause}")


class ArgumentValidationError(BridgeError):
    """Raised when call arguments do not satisfy a tool's validation model."""

    def __init__(self, violations: List["Violation"], *, tool_name: Optional[str] = None):
        self.violations = violations
        details = "; ".join(str(v) for v in violations)
        super().__init__(f"Invalid arguments: {details}", tool_name=tool_name)
