"""Tests for tooling.executor module."""

import asyncio
import pytest
from pydantic import BaseModel

from tooling.exceptions import (
    ToolArgumentError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from tooling.executor import ToolExecutor, result_to_text
from tooling.registry import ToolRegistry, tool_registry
from tooling.tool import Tool

ADD_SCHEMA = {
    "type": "object",
    "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
    "required": ["a", "b"],
}


class Weather(BaseModel):
    city: str
    temperature: int


class TestResultToText:
    """Test suite for result_to_text."""

    def test_conversions(self):
        """Test rendering of tool results as text."""
        assert result_to_text(None) == ""
        assert result_to_text("plain") == "plain"
        assert result_to_text({"a": 1}) == '{"a": 1}'
        assert result_to_text([1, 2]) == "[1, 2]"
        assert result_to_text(Weather(city="Oslo", temperature=3)) == (
            '{"city":"Oslo","temperature":3}'
        )


class TestToolExecutor:
    """Test suite for the ToolExecutor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = ToolRegistry()
        self.executor = ToolExecutor(self.registry, default_timeout=1.0)

    def register(self, name, execute, **kwargs):
        self.registry.register(Tool(name=name, description=name, execute=execute, **kwargs))

    @pytest.mark.asyncio
    async def test_execute_success(self):
        """Test executing a registered tool."""
        self.register("add", lambda args: args["a"] + args["b"], parameters=ADD_SCHEMA)
        assert await self.executor.execute("add", {"a": 1, "b": 2}) == 3

    @pytest.mark.asyncio
    async def test_execute_not_found(self):
        """Test that an unknown tool raises ToolNotFoundError."""
        with pytest.raises(ToolNotFoundError, match="Tool 'missing' not found"):
            await self.executor.execute("missing", {})

    @pytest.mark.asyncio
    async def test_invalid_arguments(self):
        """Test that arguments are validated against the schema."""
        self.register("add", lambda args: args["a"] + args["b"], parameters=ADD_SCHEMA)

        with pytest.raises(ToolArgumentError) as exc_info:
            await self.executor.execute("add", {"a": "one"})

        assert exc_info.value.name == "add"
        assert len(exc_info.value.errors) == 2

    @pytest.mark.asyncio
    async def test_validation_can_be_disabled(self):
        """Test that validation is skipped when disabled."""
        executor = ToolExecutor(self.registry, validate_arguments=False)
        self.register("first", lambda args: args.get("a"), parameters=ADD_SCHEMA)

        assert await executor.execute("first", {"a": "x"}) == "x"

    @pytest.mark.asyncio
    async def test_tool_exception_wrapped(self):
        """Test that tool exceptions become ToolExecutionError."""

        def broken(args):
            raise RuntimeError("database down")

        self.register("broken", broken)

        with pytest.raises(ToolExecutionError, match="Tool 'broken' failed: database down"):
            await self.executor.execute("broken", {})

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that slow tools time out."""

        async def slow(args):
            await asyncio.sleep(1)

        self.register("slow", slow, timeout=0.01)

        with pytest.raises(ToolTimeoutError, match="timed out"):
            await self.executor.execute("slow", {})

    @pytest.mark.asyncio
    async def test_timeout_override(self):
        """Test that the call timeout overrides tool and default timeouts."""

        async def slow(args):
            await asyncio.sleep(0.2)
            return "done"

        self.register("slow", slow)

        with pytest.raises(ToolTimeoutError):
            await self.executor.execute("slow", {}, timeout=0.01)

    @pytest.mark.asyncio
    async def test_record_success(self):
        """Test the record of a successful call."""
        self.register("weather", lambda args: {"temp": 21})

        record = await self.executor.execute_with_record(
            "weather", {"city": "Rome"}, tool_call_id="call-1"
        )

        assert record.success is True
        assert record.result == '{"temp": 21}'
        assert record.tool_call_id == "call-1"
        assert record.arguments == {"city": "Rome"}
        assert record.error is None

    @pytest.mark.asyncio
    async def test_record_never_raises(self):
        """Test that failures are captured as error text."""

        def broken(args):
            raise RuntimeError("boom")

        self.register("broken", broken)

        record = await self.executor.execute_with_record("broken", {})
        assert record.success is False
        assert record.result == "Error: Tool 'broken' failed: boom"

    @pytest.mark.asyncio
    async def test_record_unknown_tool(self):
        """Test that an unknown tool yields the not-found error text."""
        record = await self.executor.execute_with_record("missing", {})

        assert record.success is False
        assert record.result == "Error: Tool 'missing' not found"

    @pytest.mark.asyncio
    async def test_record_wraps_non_dict_arguments(self):
        """Test that scalar arguments are passed as {"input": value}."""
        self.register("echo", lambda args: args)

        record = await self.executor.execute_with_record("echo", "hello")
        assert record.arguments == {"input": "hello"}
        assert record.result == '{"input": "hello"}'

    def test_tools_schema_openai_format(self):
        """Test the OpenAI-style function schema."""
        self.register("add", lambda args: None, parameters=ADD_SCHEMA)

        assert self.executor.get_tools_schema() == [
            {
                "type": "function",
                "function": {"name": "add", "description": "add", "parameters": ADD_SCHEMA},
            }
        ]
        assert self.executor.list_tools() == ["add"]

    def test_defaults_to_global_registry(self):
        """Test that the executor falls back to the module registry."""
        executor = ToolExecutor()
        assert executor.registry is tool_registry
