"""Tests for tooling.decorator and tooling.introspection modules."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

import pytest
from pydantic import BaseModel

from tooling.decorator import tool
from tooling.introspection import (
    build_tool_metadata,
    parameters_schema,
    python_type_to_json_schema,
    return_schema,
)
from tooling.registry import ToolRegistry, tool_registry


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class Point(BaseModel):
    x: int
    y: int


class TestTypeConversion:
    """Test suite for python_type_to_json_schema."""

    def test_basic_types(self):
        """Test conversion of builtin scalar and container types."""
        assert python_type_to_json_schema(int) == {"type": "integer"}
        assert python_type_to_json_schema(float) == {"type": "number"}
        assert python_type_to_json_schema(str) == {"type": "string"}
        assert python_type_to_json_schema(bool) == {"type": "boolean"}
        assert python_type_to_json_schema(dict) == {"type": "object"}
        assert python_type_to_json_schema(list) == {"type": "array"}

    def test_typed_containers(self):
        """Test conversion of typed lists and dicts."""
        assert python_type_to_json_schema(List[int]) == {
            "type": "array",
            "items": {"type": "integer"},
        }
        assert python_type_to_json_schema(Dict[str, float]) == {
            "type": "object",
            "additionalProperties": {"type": "number"},
        }

    def test_optional_and_union(self):
        """Test that Optional unwraps and Union becomes anyOf."""
        assert python_type_to_json_schema(Optional[str]) == {"type": "string"}
        assert python_type_to_json_schema(Union[int, str]) == {
            "anyOf": [{"type": "integer"}, {"type": "string"}]
        }

    def test_enum(self):
        """Test that enums list their values."""
        assert python_type_to_json_schema(Color) == {"type": "string", "enum": ["red", "blue"]}

    def test_literal_values(self):
        """Test that Literal becomes an enum, typed when the values agree."""
        assert python_type_to_json_schema(Literal["C", "F"]) == {
            "type": "string",
            "enum": ["C", "F"],
        }
        assert python_type_to_json_schema(Literal[1, "one"]) == {"enum": [1, "one"]}

    def test_annotated_description(self):
        """Test that string metadata on Annotated becomes the description."""
        assert python_type_to_json_schema(Annotated[int, "Number of results"]) == {
            "type": "integer",
            "description": "Number of results",
        }

    def test_tuples_and_any(self):
        """Test fixed and variadic tuples, and that Any is unconstrained."""
        assert python_type_to_json_schema(Tuple[int, str]) == {
            "type": "array",
            "prefixItems": [{"type": "integer"}, {"type": "string"}],
            "minItems": 2,
            "maxItems": 2,
        }
        assert python_type_to_json_schema(Tuple[float, ...]) == {
            "type": "array",
            "items": {"type": "number"},
        }
        assert python_type_to_json_schema(Dict[str, Any]) == {
            "type": "object",
            "additionalProperties": {},
        }

    def test_pydantic_model(self):
        """Test that pydantic models use their own JSON schema."""
        schema = python_type_to_json_schema(Point)
        assert schema["type"] == "object"
        assert set(schema["properties"]) == {"x", "y"}


class TestParametersSchema:
    """Test suite for signature introspection."""

    def test_required_and_optional_parameters(self):
        """Test that parameters without defaults are required."""

        def search(query: str, limit: int = 10, tags: Optional[List[str]] = None):
            pass

        assert parameters_schema(search) == {
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "limit": {"type": "integer", "default": 10},
                "tags": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["query"],
        }

    def test_annotated_parameters_and_defaults(self):
        """Test parameter descriptions and JSON defaults in the schema."""

        def get_weather(
            city: Annotated[str, "City name"],
            unit: Literal["C", "F"] = "C",
            color: Color = Color.RED,
            since: object = object(),
        ):
            pass

        schema = parameters_schema(get_weather)

        assert schema["properties"]["city"] == {"type": "string", "description": "City name"}
        assert schema["properties"]["unit"] == {
            "type": "string",
            "enum": ["C", "F"],
            "default": "C",
        }
        assert schema["properties"]["color"]["default"] == "red"
        assert "default" not in schema["properties"]["since"]
        assert schema["required"] == ["city"]

    def test_unannotated_and_variadic_parameters(self):
        """Test that unannotated params are strings and *args/**kwargs are skipped."""

        def loose(value, *args, **kwargs):
            pass

        assert parameters_schema(loose) == {
            "type": "object",
            "properties": {"value": {"type": "string"}},
            "required": ["value"],
        }

    def test_return_schema(self):
        """Test return type introspection."""

        def count() -> int:
            return 1

        def nothing() -> None:
            pass

        assert return_schema(count) == {"type": "integer"}
        assert return_schema(nothing) is None

    def test_build_tool_metadata(self):
        """Test the full metadata of a tool function."""

        def greet(name: str) -> str:
            return f"Hello {name}"

        metadata = build_tool_metadata(greet, "greet", "Greets someone")
        assert metadata["name"] == "greet"
        assert metadata["description"] == "Greets someone"
        assert metadata["parameters"]["required"] == ["name"]
        assert metadata["returns"] == {"type": "string"}


class TestToolDecorator:
    """Test suite for the @tool decorator."""

    def test_registers_in_global_registry(self):
        """Test that decorated functions land in the module registry."""

        @tool(description="Adds two numbers")
        def add(a: int, b: int) -> int:
            return a + b

        registered = tool_registry.get("add")
        assert registered is not None
        assert registered.description == "Adds two numbers"
        assert registered.call_style == "kwargs"
        assert registered.parameters["required"] == ["a", "b"]

    def test_returns_original_function(self):
        """Test that the decorated function still works and carries its Tool."""

        @tool(description="Doubles a number")
        def double(x: int) -> int:
            return x * 2

        assert double(4) == 8
        assert double.__tool__.name == "double"

    def test_custom_name_and_registry(self):
        """Test registering under a custom name in a given registry."""
        registry = ToolRegistry()

        @tool(name="lookup", description="Looks up", registry=registry)
        def find(key: str) -> str:
            return key

        assert registry.has("lookup")
        assert not tool_registry.has("lookup")

    def test_docstring_used_as_description(self):
        """Test that the docstring is the fallback description."""

        @tool()
        def documented(x: int) -> int:
            """Returns x unchanged."""
            return x

        assert tool_registry.get("documented").description == "Returns x unchanged."

    def test_missing_description_rejected(self):
        """Test that a tool needs a description or docstring."""
        with pytest.raises(ValueError, match="must have a description"):

            @tool()
            def undocumented(x: int) -> int:
                return x

    def test_required_env_and_timeout(self):
        """Test that configuration requirements are kept on the tool."""

        @tool(description="Calls an API", required_env=["PLANFLOW_API_KEY"], timeout=5)
        def call_api() -> str:
            return "ok"

        registered = call_api.__tool__
        assert registered.required_env == ["PLANFLOW_API_KEY"]
        assert registered.timeout == 5

    @pytest.mark.asyncio
    async def test_decorated_tool_runs_with_kwargs(self):
        """Test running a decorated tool through its descriptor."""

        @tool(description="Concatenates")
        def concat(a: str, b: str = "!") -> str:
            return a + b

        assert await concat.__tool__.run({"a": "hi"}) == "hi!"
