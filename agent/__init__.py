"""Planning agent built on the flow engine.

This package provides the Plan -> Execute -> Replan -> Respond agent: the
graph nodes, the controller that runs them, the model-call adapter and the
event channel for observing runs.
"""

from agent.config import AgentConfig, get_config, set_config
from agent.events import ALL_EVENTS, AgentEvent, EventBus, EventType
from agent.exceptions import (
    AgentError,
    AgentInvocationError,
    ConfigurationError,
    ModelCallError,
    ModelTimeoutError,
)
from agent.models import (
    AgentContext,
    AgentResponse,
    InvokeOptions,
    Message,
    Role,
    ToolCall,
    ToolResult,
)
from agent.model import ModelClient, create_chat_model
from agent.nodes import (
    EndNode,
    ExecutionNode,
    PlanningNode,
    ReplanningNode,
    ResponseNode,
    ToolExecutionNode,
)
from agent.controller import PlanningAgent, build_agent_flow
from agent.api import run_agent

__all__ = [
    # Configuration
    "AgentConfig",
    "get_config",
    "set_config",
    # Events
    "ALL_EVENTS",
    "AgentEvent",
    "EventBus",
    "EventType",
    # Exceptions
    "AgentError",
    "AgentInvocationError",
    "ConfigurationError",
    "ModelCallError",
    "ModelTimeoutError",
    # Models
    "AgentContext",
    "AgentResponse",
    "InvokeOptions",
    "Message",
    "Role",
    "ToolCall",
    "ToolResult",
    # Runtime
    "ModelClient",
    "create_chat_model",
    "PlanningNode",
    "ExecutionNode",
    "ToolExecutionNode",
    "ReplanningNode",
    "ResponseNode",
    "EndNode",
    "PlanningAgent",
    "build_agent_flow",
    "run_agent",
]
