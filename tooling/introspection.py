"""
Convert Python tool functions into descriptors the agent can show a model.

It derives:
- a JSON schema for the parameters, from the signature and type hints
- a JSON schema for the return type (optional)

Parameter descriptions can be attached with ``Annotated``::

    @tool
    def get_weather(
        city: Annotated[str, "City name, e.g. 'Paris'"],
        unit: Literal["C", "F"] = "C",
    ) -> str:
        ...
"""

import json
from enum import Enum
from inspect import Parameter, signature
from typing import (
    Annotated,
    Any,
    Dict,
    Literal,
    Optional,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel

_BASIC_TYPES = {
    int: {"type": "integer"},
    float: {"type": "number"},
    str: {"type": "string"},
    bool: {"type": "boolean"},
    dict: {"type": "object"},
    list: {"type": "array"},
    tuple: {"type": "array"},
    type(None): {"type": "null"},
}

_LITERAL_TYPES = {bool: "boolean", int: "integer", float: "number", str: "string"}


def _literal_schema(values: tuple) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"enum": list(values)}
    kinds = {_LITERAL_TYPES.get(type(value)) for value in values}
    if len(kinds) == 1 and None not in kinds:
        schema["type"] = kinds.pop()
    return schema


def python_type_to_json_schema(py_type: Any) -> Dict[str, Any]:
    """Convert a Python type to a JSON schema.

    Args:
        py_type: The type to convert. Supports basic types, typed lists,
                tuples and dicts, Pydantic models, unions, enums, Literal
                values and Annotated types (string metadata becomes the
                description).

    Returns:
        A dictionary representing the JSON schema for the given type.
    """
    if py_type is Any:
        return {}

    if isinstance(py_type, type) and py_type in _BASIC_TYPES:
        return dict(_BASIC_TYPES[py_type])

    if isinstance(py_type, type) and issubclass(py_type, BaseModel):
        return py_type.model_json_schema()

    if isinstance(py_type, type) and issubclass(py_type, Enum):
        return _literal_schema(tuple(member.value for member in py_type))

    origin = get_origin(py_type)
    args = get_args(py_type)

    if origin is Annotated:
        schema = python_type_to_json_schema(args[0])
        descriptions = [meta for meta in args[1:] if isinstance(meta, str)]
        if descriptions:
            schema["description"] = " ".join(descriptions)
        return schema

    if origin is Literal:
        return _literal_schema(args)

    if origin is list:
        schema = {"type": "array"}
        if args:
            schema["items"] = python_type_to_json_schema(args[0])
        return schema

    if origin is tuple:
        schema = {"type": "array"}
        if len(args) == 2 and args[1] is Ellipsis:
            schema["items"] = python_type_to_json_schema(args[0])
        elif args:
            schema["prefixItems"] = [python_type_to_json_schema(arg) for arg in args]
            schema["minItems"] = schema["maxItems"] = len(args)
        return schema

    if origin is dict:
        schema = {"type": "object"}
        if len(args) == 2:
            schema["additionalProperties"] = python_type_to_json_schema(args[1])
        return schema

    if origin is Union:
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1:
            return python_type_to_json_schema(non_none[0])
        return {"anyOf": [python_type_to_json_schema(arg) for arg in non_none]}

    return {"type": "string"}


def _json_default(value: Any) -> Any:
    """Default value as shown to the model, or Parameter.empty if not JSON."""
    if isinstance(value, Enum):
        value = value.value
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return Parameter.empty
    return value


def parameters_schema(fn) -> Dict[str, Any]:
    """Build the JSON schema of a function's parameters.

    Parameters without a default are required; JSON-serializable defaults
    are listed in the schema. Unannotated parameters are treated as strings.
    ``*args``/``**kwargs`` are ignored.
    """
    hints = get_type_hints(fn, include_extras=True)
    properties: Dict[str, Any] = {}
    required = []

    for name, param in signature(fn).parameters.items():
        if param.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(name, param.annotation)
        if annotation is Parameter.empty:
            properties[name] = {"type": "string"}
        else:
            properties[name] = python_type_to_json_schema(annotation)
        if param.default is Parameter.empty:
            required.append(name)
        else:
            default = _json_default(param.default)
            if default is not Parameter.empty and default is not None:
                properties[name]["default"] = default

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def return_schema(fn) -> Optional[Dict[str, Any]]:
    """JSON schema of a function's return annotation, or None."""
    annotation = get_type_hints(fn).get("return")
    if annotation is None or annotation is type(None):
        return None
    return python_type_to_json_schema(annotation)


def build_tool_metadata(fn, name: str, description: str) -> Dict[str, Any]:
    """
    Build the metadata of a tool function.

    Args:
        fn: The tool function.
        name: The unique name of the tool.
        description: A human-readable description of the tool.

    Returns:
        A dictionary with name, description, parameters and returns.
    """
    return {
        "name": name,
        "description": description,
        "parameters": parameters_schema(fn),
        "returns": return_schema(fn),
    }
