"""Tool descriptor model.

A tool is a named capability with a description, a JSON schema for its
parameters and an execute callable. Callables may be sync or async; sync
callables run in the default thread pool so they never block the loop.
"""

import asyncio
import functools
import inspect
import os
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def _empty_schema() -> Dict[str, Any]:
    return {"type": "object", "properties": {}}


class Tool(BaseModel):
    """A named tool the agent can call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1, description="Unique name of the tool")
    description: str = Field(default="", description="What the tool does")
    parameters: Dict[str, Any] = Field(
        default_factory=_empty_schema, description="JSON schema of the arguments"
    )
    execute: Callable[..., Any] = Field(description="Callable implementing the tool")
    call_style: Literal["dict", "kwargs"] = Field(
        default="dict",
        description="Pass arguments as one dict ('dict') or as keyword arguments ('kwargs')",
    )
    required_env: List[str] = Field(
        default_factory=list, description="Environment variables the tool needs"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Per-tool timeout override in seconds"
    )

    def schema_dict(self) -> Dict[str, Any]:
        """Descriptor shown to the model."""
        return {
            "name": self.name,
            "description": self.description or "No description",
            "parameters": self.parameters,
        }

    def missing_env(self) -> List[str]:
        """Required environment variables that are unset or empty."""
        return [name for name in self.required_env if not os.getenv(name)]

    async def run(self, args: Dict[str, Any]) -> Any:
        """Execute the tool with ``args``.

        Args:
            args: Argument dictionary

        Returns:
            Whatever the execute callable returns
        """
        if self.call_style == "kwargs":
            call = functools.partial(self.execute, **args)
        else:
            call = functools.partial(self.execute, args)

        if inspect.iscoroutinefunction(self.execute):
            return await call()

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, call)
        if inspect.isawaitable(result):
            result = await result
        return result
