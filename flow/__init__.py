"""Flow engine - nodes, flows and batch variants.

This package provides the units of work (nodes) with a prep/exec/post
lifecycle and retry policy, the Flow orchestrator that walks a graph of
nodes by action label, and the batch and parallel batch variants.
"""

from flow.node import BaseNode, Node, DEFAULT_ACTION
from flow.flow import Flow
from flow.batch import BatchNode, ParallelBatchNode, BatchFlow, ParallelBatchFlow
from flow.registry import NodeRegistry, node_registry, register_node
from flow.definition import FlowDefinition, NodeSpec, EdgeSpec, build_flow
from flow.exceptions import (
    FlowError,
    FlowStepLimitError,
    NodeTimeoutError,
    ParallelExecutionError,
    NodeRegistrationError,
    UnknownNodeTypeError,
    FlowDefinitionError,
)

__all__ = [
    # Nodes
    "BaseNode",
    "Node",
    "DEFAULT_ACTION",
    # Orchestration
    "Flow",
    "BatchNode",
    "ParallelBatchNode",
    "BatchFlow",
    "ParallelBatchFlow",
    # Registry and definitions
    "NodeRegistry",
    "node_registry",
    "register_node",
    "FlowDefinition",
    "NodeSpec",
    "EdgeSpec",
    "build_flow",
    # Exceptions
    "FlowError",
    "FlowStepLimitError",
    "NodeTimeoutError",
    "ParallelExecutionError",
    "NodeRegistrationError",
    "UnknownNodeTypeError",
    "FlowDefinitionError",
]
