"""Tool executor with argument validation and timeouts.

``execute`` raises typed errors; ``execute_with_record`` never raises and
turns every failure into an error-text record, so one failing tool call can
not abort a batch of calls.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel

from tooling.exceptions import (
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from tooling.models import ToolCallRecord
from tooling.registry import ToolRegistry, tool_registry
from tooling.tool import Tool

logger = logging.getLogger(__name__)


def result_to_text(result: Any) -> str:
    """Render a tool result as text for the conversation."""
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    try:
        return json.dumps(result, default=str)
    except (TypeError, ValueError):
        return str(result)


class ToolExecutor:
    """Executes registered tools.

    Adds on top of the bare tool callables:
    - Lookup by name
    - JSON schema validation of arguments
    - Configurable timeouts
    - Detailed execution records
    """

    def __init__(
        self,
        registry: Optional[ToolRegistry] = None,
        default_timeout: Optional[float] = 30.0,
        validate_arguments: bool = True,
    ):
        """Initialize the tool executor.

        Args:
            registry: The ToolRegistry containing available tools (module-level if omitted)
            default_timeout: Default timeout in seconds, None disables timeouts
            validate_arguments: Validate arguments against each tool's parameter schema
        """
        self._registry = registry if registry is not None else tool_registry
        self._default_timeout = default_timeout
        self._validate_arguments = validate_arguments

    @property
    def registry(self) -> ToolRegistry:
        """Get the underlying tool registry."""
        return self._registry

    def _validate(self, tool: Tool, arguments: Dict[str, Any]) -> None:
        schema = tool.parameters
        if not schema:
            return
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            logger.warning(f"Skipping argument validation for '{tool.name}': {e.message}")
            return
        validator = Draft202012Validator(schema)
        errors = sorted(
            validator.iter_errors(arguments), key=lambda e: [str(p) for p in e.path]
        )
        if errors:
            raise ToolArgumentError(tool.name, [e.message for e in errors])

    async def execute(
        self,
        name: str,
        arguments: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """Execute a tool.

        Args:
            name: The tool to execute
            arguments: Arguments to pass to the tool
            timeout: Optional timeout override

        Returns:
            The tool's raw result

        Raises:
            ToolNotFoundError: If the tool is not registered
            ToolArgumentError: If the arguments do not match the schema
            ToolTimeoutError: If the execution times out
            ToolExecutionError: If the tool raises
        """
        tool = self._registry.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        if self._validate_arguments:
            self._validate(tool, arguments)

        exec_timeout = timeout or tool.timeout or self._default_timeout

        try:
            if exec_timeout:
                return await asyncio.wait_for(tool.run(arguments), timeout=exec_timeout)
            return await tool.run(arguments)
        except asyncio.TimeoutError:
            raise ToolTimeoutError(
                f"Tool '{name}' timed out after {exec_timeout}s"
            ) from None
        except ToolError:
            raise
        except Exception as e:
            raise ToolExecutionError(f"Tool '{name}' failed: {e}") from e

    async def execute_with_record(
        self,
        name: str,
        arguments: Any,
        tool_call_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ToolCallRecord:
        """Execute a tool and return a detailed record.

        Never raises: failures are captured as ``success=False`` with an
        ``"Error: ..."`` result text.

        Args:
            name: The tool to execute
            arguments: Arguments; non-dict values are wrapped as ``{"input": value}``
            tool_call_id: Optional ID for the tool call record
            timeout: Optional timeout override

        Returns:
            ToolCallRecord with execution details
        """
        if not isinstance(arguments, dict):
            arguments = {"input": arguments}

        record = ToolCallRecord(name=name, arguments=arguments)
        if tool_call_id:
            record.tool_call_id = tool_call_id

        start_time = datetime.utcnow()

        try:
            result = await self.execute(name, arguments, timeout=timeout)
            record.result = result_to_text(result)
            record.success = True

        except ToolError as e:
            record.success = False
            record.error = str(e)

        except Exception as e:
            record.success = False
            record.error = f"Unexpected error: {e}"

        finally:
            record.latency_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)
            record.timestamp = start_time

        if not record.success:
            record.result = f"Error: {record.error}"
            logger.warning(f"Tool call '{name}' failed: {record.error}")

        return record

    def get_tools_schema(self, names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Get OpenAI-compatible tools schema for registered tools.

        Args:
            names: Optional tool names to include (all tools if None)

        Returns:
            List of tool definitions in OpenAI format
        """
        return [
            {"type": "function", "function": schema}
            for schema in self._registry.schemas(names)
        ]

    def list_tools(self) -> List[str]:
        return self._registry.names()
