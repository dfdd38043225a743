"""Tool registry for managing registered tools.

This module provides the ToolRegistry class which stores tools by their
unique name.
"""

from typing import Any, Dict, Iterable, List, Optional

from tooling.exceptions import ToolConfigurationError
from tooling.tool import Tool


class ToolRegistry:
    """Registry for storing and retrieving tools by name."""

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        """Initialize the registry, optionally with tools."""
        self._tools: Dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name.

        Raises:
            ValueError: If the tool has no name
        """
        if not tool.name:
            raise ValueError("Tool must have a name")
        self._tools[tool.name] = tool

    def add(self, tool: Tool) -> None:
        """Alias for ``register``."""
        self.register(tool)

    def remove(self, name: str) -> bool:
        """Remove a tool by name. Returns True if it was registered."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def clear(self) -> None:
        self._tools.clear()

    def schemas(self, names: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """
        Descriptors of registered tools, in registration order.
        Args:
            names: Optional names to include. If None, includes all tools.
        """
        if names is None:
            return [tool.schema_dict() for tool in self._tools.values()]
        return [self._tools[n].schema_dict() for n in names if n in self._tools]

    def check_configuration(self) -> None:
        """Verify every tool has its required environment variables.

        Raises:
            ToolConfigurationError: Naming every tool with missing variables
        """
        missing = {}
        for tool in self._tools.values():
            unset = tool.missing_env()
            if unset:
                missing[tool.name] = unset
        if missing:
            raise ToolConfigurationError(missing)


# Module-level registry instance used by the `tool` decorator
tool_registry = ToolRegistry()
