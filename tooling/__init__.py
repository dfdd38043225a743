"""Tooling module for registering and executing tools.

This module provides the core infrastructure for defining tools,
registering them by name and executing them with failures captured as
records.
"""

from tooling.tool import Tool
from tooling.registry import ToolRegistry, tool_registry
from tooling.decorator import tool
from tooling.executor import ToolExecutor, result_to_text
from tooling.models import ToolCallRecord
from tooling.introspection import build_tool_metadata
from tooling.exceptions import (
    ToolError,
    ToolNotFoundError,
    ToolArgumentError,
    ToolExecutionError,
    ToolTimeoutError,
    ToolConfigurationError,
)

__all__ = [
    "Tool",
    "ToolRegistry",
    "tool_registry",
    "tool",
    "ToolExecutor",
    "result_to_text",
    "ToolCallRecord",
    "build_tool_metadata",
    "ToolError",
    "ToolNotFoundError",
    "ToolArgumentError",
    "ToolExecutionError",
    "ToolTimeoutError",
    "ToolConfigurationError",
]
