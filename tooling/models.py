"""Record models for tool execution."""

from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from pydantic import BaseModel, Field


class ToolCallRecord(BaseModel):
    """Record of a tool invocation."""

    tool_call_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier for this tool call",
    )
    name: str = Field(description="Name of the tool that was called")
    arguments: Dict[str, Any] = Field(
        default_factory=dict, description="Arguments passed to the tool"
    )
    result: str = Field(
        default="", description="Result text, or 'Error: ...' if the call failed"
    )
    success: bool = Field(default=False, description="Whether the tool call succeeded")
    error: Optional[str] = Field(
        default=None, description="Error message if the call failed"
    )
    latency_ms: int = Field(default=0, description="Latency of the tool call in milliseconds")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="When the tool call was made"
    )
