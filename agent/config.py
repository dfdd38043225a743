"""Planning agent configuration."""

from typing import Optional
import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


class AgentConfig(BaseModel):
    """Configuration for the planning agent.

    All settings can be overridden via environment variables
    with the PLANFLOW_ prefix.
    """

    # Loop behavior
    max_iterations: int = Field(
        default=10, ge=1, le=100, description="Maximum Plan/Replan traversals per run"
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT, description="System prompt prepended to phases"
    )
    flow_max_steps: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional hard budget of node executions per run",
    )

    # Retry behavior of the model-calling nodes
    node_max_retries: int = Field(
        default=1, ge=1, le=10, description="Exec attempts per node"
    )
    node_retry_wait: float = Field(
        default=0.0, ge=0.0, description="Delay between attempts in seconds"
    )

    # Timeouts (seconds)
    model_timeout: Optional[float] = Field(
        default=None, gt=0, description="Timeout for a single model call"
    )
    tool_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for a single tool call"
    )
    event_drain_timeout: float = Field(
        default=0.1,
        ge=0.0,
        description="Longest wait for async event handlers at the end of a run",
    )

    # Model configuration
    default_model: str = Field(
        default="gpt-4o-mini", description="Model used when none is supplied"
    )
    temperature: float = Field(
        default=0.0, ge=0.0, le=2.0, description="Temperature for model calls"
    )
    stream_tokens: bool = Field(
        default=False, description="Stream model output and emit llm:token events"
    )

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Create config from environment variables (and a .env file if present)."""
        load_dotenv(find_dotenv(usecwd=True))
        max_steps = os.getenv("PLANFLOW_FLOW_MAX_STEPS")
        return cls(
            max_iterations=int(os.getenv("PLANFLOW_MAX_ITERATIONS", "10")),
            system_prompt=os.getenv("PLANFLOW_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
            flow_max_steps=int(max_steps) if max_steps else None,
            node_max_retries=int(os.getenv("PLANFLOW_NODE_MAX_RETRIES", "1")),
            node_retry_wait=float(os.getenv("PLANFLOW_NODE_RETRY_WAIT", "0")),
            model_timeout=_env_float("PLANFLOW_MODEL_TIMEOUT"),
            tool_timeout=float(os.getenv("PLANFLOW_TOOL_TIMEOUT", "30")),
            event_drain_timeout=float(os.getenv("PLANFLOW_EVENT_DRAIN_TIMEOUT", "0.1")),
            default_model=os.getenv("PLANFLOW_DEFAULT_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("PLANFLOW_TEMPERATURE", "0")),
            stream_tokens=os.getenv("PLANFLOW_STREAM_TOKENS", "false").lower() == "true",
        )


# Global config instance
_config: Optional[AgentConfig] = None


def get_config() -> AgentConfig:
    """Get the global agent config instance."""
    global _config
    if _config is None:
        _config = AgentConfig.from_env()
    return _config


def set_config(config: Optional[AgentConfig]) -> None:
    """Set (or with None, reset) the global agent config instance."""
    global _config
    _config = config
