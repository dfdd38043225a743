"""Node-type registry for building nodes by name.

Node kinds are added by registering a factory under a type name, so
declarative flow definitions can create nodes without a dispatch chain.
"""

from typing import Any, Callable, Dict, List, Optional
import logging

from flow.exceptions import NodeRegistrationError, UnknownNodeTypeError
from flow.node import BaseNode

logger = logging.getLogger(__name__)

NodeFactory = Callable[..., BaseNode]


class NodeRegistry:
    """Registry mapping node type names to factories.

    Each entry keeps the factory, a description and the default config that
    is merged under the config passed to ``create``.
    """

    def __init__(self):
        """Initialize an empty node registry."""
        self._types: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        type_name: str,
        factory: NodeFactory,
        description: str = "",
        default_config: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Register a node factory.

        Args:
            type_name: Unique name of the node type
            factory: Callable returning a node; receives ``node_id`` and config as kwargs
            description: Human-readable description of the node type
            default_config: Config values used when ``create`` does not override them

        Raises:
            NodeRegistrationError: If the type name is already registered
        """
        if type_name in self._types:
            raise NodeRegistrationError(f"Node type '{type_name}' is already registered")
        self._types[type_name] = {
            "type": type_name,
            "factory": factory,
            "description": description,
            "default_config": dict(default_config or {}),
        }
        logger.debug(f"Registered node type: {type_name}")

    def unregister(self, type_name: str) -> bool:
        """Remove a node type. Returns True if it was registered."""
        return self._types.pop(type_name, None) is not None

    def get(self, type_name: str) -> Optional[Dict[str, Any]]:
        """Retrieve the entry for a node type, or None."""
        return self._types.get(type_name)

    def is_registered(self, type_name: str) -> bool:
        return type_name in self._types

    def list_types(self) -> List[str]:
        return list(self._types.keys())

    def create(self, type_name: str, node_id: Optional[str] = None, **config: Any) -> BaseNode:
        """Create a node instance of a registered type.

        Args:
            type_name: Registered node type
            node_id: Optional identifier for the new node
            **config: Config overriding the registered defaults

        Returns:
            The new node

        Raises:
            UnknownNodeTypeError: If the type is not registered
        """
        entry = self._types.get(type_name)
        if entry is None:
            raise UnknownNodeTypeError(type_name)
        merged = {**entry["default_config"], **config}
        return entry["factory"](node_id=node_id, **merged)


def register_node(
    type_name: str,
    description: str = "",
    registry: Optional[NodeRegistry] = None,
    **default_config: Any,
):
    """Class decorator registering a node class as a node type.

    Args:
        type_name: Unique name of the node type
        description: Description of the node type, falls back to the class docstring
        registry: Registry to use (module-level registry if omitted)
        **default_config: Default constructor kwargs for the node

    Returns:
        The decorated class, unchanged
    """

    def decorator(cls):
        target = registry if registry is not None else node_registry
        doc = (cls.__doc__ or "").strip().splitlines()
        target.register(
            type_name,
            cls,
            description=description or (doc[0] if doc else ""),
            default_config=default_config,
        )
        return cls

    return decorator


# Module-level registry instance used by `register_node` and flow definitions
node_registry = NodeRegistry()
