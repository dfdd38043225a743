"""Declarative flow definitions.

A FlowDefinition describes a graph as an id-keyed collection of node specs
and labelled edges. ``build_flow`` turns it into a runnable Flow by creating
every node once through the node registry and wiring successors by id, so
self-loops and back-edges need no special handling.
"""

from collections import Counter
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, Field

from flow.exceptions import FlowDefinitionError
from flow.flow import Flow
from flow.node import DEFAULT_ACTION, BaseNode
from flow.registry import NodeRegistry, node_registry

logger = logging.getLogger(__name__)


class NodeSpec(BaseModel):
    """A node in a flow definition."""

    node_id: str = Field(description="Unique identifier for this node")
    type: str = Field(description="Registered node type used to create the node")
    config: Dict[str, Any] = Field(
        default_factory=dict, description="Config passed to the node factory"
    )


class EdgeSpec(BaseModel):
    """A labelled edge between two nodes."""

    from_node: str = Field(description="ID of the source node")
    to_node: str = Field(description="ID of the target node")
    action: str = Field(
        default=DEFAULT_ACTION, description="Action label selecting this edge"
    )


class FlowDefinition(BaseModel):
    """A graph of nodes connected by action labels.

    Cycles, including self-loops, are allowed.
    """

    id: str = Field(description="Unique identifier for this flow")
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="", description="What this flow does")

    nodes: List[NodeSpec] = Field(default_factory=list, description="Nodes in the graph")
    edges: List[EdgeSpec] = Field(default_factory=list, description="Edges between nodes")
    start_node: str = Field(description="ID of the node the flow starts from")
    max_steps: Optional[int] = Field(
        default=None, ge=1, description="Optional budget of node executions per run"
    )

    def get_node(self, node_id: str) -> Optional[NodeSpec]:
        """Get a node by its ID."""
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    def get_outgoing_edges(self, node_id: str) -> List[EdgeSpec]:
        """Get all edges originating from a node."""
        return [edge for edge in self.edges if edge.from_node == node_id]

    def successor_map(self) -> Dict[str, Dict[str, str]]:
        """Build ``node_id -> (action -> node_id)`` for fast lookup."""
        successors: Dict[str, Dict[str, str]] = {node.node_id: {} for node in self.nodes}
        for edge in self.edges:
            successors.setdefault(edge.from_node, {})[edge.action] = edge.to_node
        return successors

    def validate_graph(self) -> List[str]:
        """Check the definition for dangling references and duplicates.

        Returns:
            List of problems found; empty when the definition is consistent
        """
        problems = []
        node_ids = [node.node_id for node in self.nodes]

        for node_id, count in Counter(node_ids).items():
            if count > 1:
                problems.append(f"Duplicate node id '{node_id}'")

        known = set(node_ids)
        if self.start_node not in known:
            problems.append(f"Start node '{self.start_node}' is not defined")

        for edge in self.edges:
            if edge.from_node not in known:
                problems.append(f"Edge source '{edge.from_node}' is not defined")
            if edge.to_node not in known:
                problems.append(f"Edge target '{edge.to_node}' is not defined")

        pairs = Counter((edge.from_node, edge.action) for edge in self.edges)
        for (from_node, action), count in pairs.items():
            if count > 1:
                problems.append(
                    f"Node '{from_node}' has {count} edges for action '{action}'"
                )

        return problems


def build_flow(definition: FlowDefinition, registry: Optional[NodeRegistry] = None) -> Flow:
    """Build a runnable Flow from a definition.

    Args:
        definition: The flow definition
        registry: Node registry used to create nodes (module-level if omitted)

    Returns:
        A Flow starting at the definition's start node

    Raises:
        FlowDefinitionError: If the definition is inconsistent
        UnknownNodeTypeError: If a node spec names an unregistered type
    """
    problems = definition.validate_graph()
    if problems:
        raise FlowDefinitionError(
            f"Invalid flow definition '{definition.id}': " + "; ".join(problems)
        )

    registry = registry if registry is not None else node_registry
    nodes: Dict[str, BaseNode] = {
        spec.node_id: registry.create(spec.type, node_id=spec.node_id, **spec.config)
        for spec in definition.nodes
    }

    for from_id, actions in definition.successor_map().items():
        for action, to_id in actions.items():
            nodes[from_id].on(action, nodes[to_id])

    logger.info(
        f"Built flow '{definition.id}' with {len(nodes)} nodes "
        f"and {len(definition.edges)} edges"
    )
    return Flow(
        start=nodes[definition.start_node],
        max_steps=definition.max_steps,
        node_id=definition.id,
    )
