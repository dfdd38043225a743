"""Tool decorator for registering functions as tools.

This module provides a decorator that turns a function into a Tool,
deriving its parameter schema from the signature, and registers it.
"""

from inspect import getdoc
from typing import Iterable, Optional
import logging

from tooling.introspection import build_tool_metadata
from tooling.registry import ToolRegistry, tool_registry
from tooling.tool import Tool

logger = logging.getLogger(__name__)


def tool(
    name: Optional[str] = None,
    description: str = "",
    registry: Optional[ToolRegistry] = None,
    required_env: Optional[Iterable[str]] = None,
    timeout: Optional[float] = None,
):
    """Decorator to register a function as a tool.

    Args:
        name: Unique tool name, defaults to the function name
        description: Human-readable description of what the tool does.
                    Can be empty if the function has a docstring.
        registry: Registry to register into (module-level registry if omitted)
        required_env: Environment variables the tool needs to run
        timeout: Optional per-tool timeout in seconds

    Returns:
        The original function; the registered Tool is attached as ``__tool__``

    Raises:
        ValueError: If neither description nor function docstring is provided
    """

    def decorator(fn):
        tool_name = name or fn.__name__
        final_description = description or getdoc(fn)
        if not final_description:
            raise ValueError(
                f"Tool '{tool_name}' must have a description either in the decorator or in the docstring."
            )

        metadata = build_tool_metadata(fn, tool_name, final_description)
        registered = Tool(
            name=tool_name,
            description=final_description,
            parameters=metadata["parameters"],
            execute=fn,
            call_style="kwargs",
            required_env=list(required_env or []),
            timeout=timeout,
        )
        (registry if registry is not None else tool_registry).register(registered)
        logger.debug(f"Registered tool: {tool_name} - {final_description}")

        fn.__tool__ = registered
        return fn

    return decorator
