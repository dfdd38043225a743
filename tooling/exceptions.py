"""Exceptions for tool registration and execution."""

from typing import Dict, List


class ToolError(Exception):
    """Base class for tool errors."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when a tool is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class ToolArgumentError(ToolError):
    """Raised when tool arguments do not match the tool's parameter schema.

    Attributes:
        name: Name of the tool.
        errors: Validation messages.
    """

    def __init__(self, name: str, errors: List[str]) -> None:
        self.name = name
        self.errors = errors
        super().__init__(f"Invalid arguments for tool '{name}': " + "; ".join(errors))


class ToolExecutionError(ToolError):
    """Raised when a tool execution fails."""

    pass


class ToolTimeoutError(ToolExecutionError):
    """Raised when a tool execution times out."""

    pass


class ToolConfigurationError(ToolError):
    """Raised when tools are missing required environment variables.

    Attributes:
        missing: Mapping of tool name to the unset variable names.
    """

    def __init__(self, missing: Dict[str, List[str]]) -> None:
        self.missing = missing
        details = ", ".join(
            f"{name} ({', '.join(variables)})" for name, variables in missing.items()
        )
        super().__init__(f"Tools missing required configuration: {details}")
