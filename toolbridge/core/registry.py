"""Registry of the proxy tools published on the outward server."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List

from toolbridge.types.models import ToolHandler

if TYPE_CHECKING:
    from toolbridge.schema.translator import ValidationModel


@dataclass(frozen=True)
class RegisteredTool:
    """A tool as published outward: its metadata, model and handler."""

    name: str
    description: str
    model: "ValidationModel"
    handler: ToolHandler


class ToolRegistry:
    """Registry for managing published tools.

    Tool names are unique; the registry keeps registration order so the
    outward catalog lists tools in the order upstream advertised them.
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: Dict[str, RegisteredTool] = {}

    def register_tool(self, tool: RegisteredTool) -> None:
        """Register a new tool.

        Args:
            tool: The tool to register

        Raises:
            ValueError: If a tool with the same name already exists
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> RegisteredTool:
        """Get a tool by name.

        Raises:
            KeyError: If no tool with the given name exists
        """
        if name not in self._tools:
            raise KeyError(f"No tool named '{name}' is registered")
        return self._tools[name]

    def list_tools(self) -> List[RegisteredTool]:
        """All registered tools, in registration order."""
        return list(self._tools.values())

    def clear(self) -> None:
        self._tools.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
