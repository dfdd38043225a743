"""State models for the planning agent.

AgentContext is the shared context of one agent run. It is created by the
controller, passed by reference through every node, and only written in
the nodes' post phase.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Role of a conversation message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Message(BaseModel):
    """A single role/content record of the conversation."""

    role: str = Field(description="system, user, assistant or tool")
    content: Union[str, List[Dict[str, Any]]] = Field(
        description="Text, or a list of content parts for multimodal messages"
    )
    name: Optional[str] = Field(default=None, description="Optional author name")

    def to_dict(self) -> Dict[str, Any]:
        """Plain role/content dictionary handed to model callables."""
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name:
            data["name"] = self.name
        return data


class ToolCall(BaseModel):
    """A tool call requested by the model."""

    name: str = Field(description="Name of the tool to call")
    args: Any = Field(default_factory=dict, description="Arguments for the tool")
    id: Optional[str] = Field(default=None, description="Optional call identifier")


class ToolResult(BaseModel):
    """Outcome of one tool call."""

    tool_call_id: Optional[str] = Field(default=None, description="ID of the call")
    name: str = Field(description="Name of the tool that was called")
    result: str = Field(description="Result text, or 'Error: ...' on failure")
    success: bool = Field(description="Whether the call succeeded")


class AgentContext(BaseModel):
    """Shared context of one planning agent run."""

    run_id: Optional[str] = Field(default=None, description="Identifier of the run")

    messages: List[Message] = Field(
        default_factory=list, description="Conversation history"
    )
    user_query: str = Field(default="", description="The current user query")
    plan: str = Field(default="", description="The current plan text")

    tool_calls: List[ToolCall] = Field(
        default_factory=list, description="Pending tool calls"
    )
    tool_results: List[ToolResult] = Field(
        default_factory=list, description="Results of the latest tool execution"
    )
    tools_used: List[str] = Field(
        default_factory=list, description="Names of every tool invoked in this run"
    )

    current_iteration: int = Field(default=0, description="Plan/Replan traversals so far")
    max_iterations: int = Field(default=10, ge=1, description="Iteration cap")

    finished: bool = Field(default=False, description="Whether a response was produced")
    final_response: str = Field(default="", description="The final response text")

    @property
    def at_iteration_cap(self) -> bool:
        return self.current_iteration >= self.max_iterations


class InvokeOptions(BaseModel):
    """Per-call options for ``PlanningAgent.invoke``."""

    max_iterations: Optional[int] = Field(
        default=None, ge=1, description="Override of the configured iteration cap"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Merged into the response metadata"
    )


class AgentResponse(BaseModel):
    """Result of an agent run."""

    output: str = Field(description="The final response text")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Elapsed time, iterations consumed, tools used and caller metadata",
    )
